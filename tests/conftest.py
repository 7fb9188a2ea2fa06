from datetime import datetime, timezone

import pytest

from engine.config.loader import ChartConfig


@pytest.fixture()
def config() -> ChartConfig:
    return ChartConfig(max_ticks=3, timezone="UTC", stage_workers=2)


@pytest.fixture()
def now() -> datetime:
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
