"""
Config Loader

Loads chart calculation settings from a YAML file with environment overrides.
Validates them into a ChartConfig for the coordinator.
"""

import os
import yaml
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, Field, field_validator
import logging

from dataflow.adapters.currency import DEFAULT_CRYPTO_CURRENCIES

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "CHART_MAX_TICKS": "max_ticks",
    "CHART_TIMEZONE": "timezone",
    "CHART_USD_CURRENCY": "usd_currency_code",
}


class ChartConfig(BaseModel):
    """Settings for chart calculations"""
    max_ticks: int = Field(default=90, ge=1)
    timezone: str = "UTC"
    crypto_exponent: int = Field(default=8, ge=0)
    fiat_exponent: int = Field(default=8, ge=0)
    usd_volume_scale_exponent: int = Field(default=4, ge=0)
    usd_currency_code: str = "USD"
    crypto_currencies: List[str] = Field(default_factory=lambda: list(DEFAULT_CRYPTO_CURRENCIES))
    stage_workers: int = Field(default=2, ge=1)
    validate_sort_order: bool = False

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class ConfigLoader:
    """
    Loads ChartConfig from YAML.

    The loader:
    1. Reads the YAML file if one is given (missing sections use defaults)
    2. Applies CHART_* environment variable overrides
    3. Validates the result

    Example usage:
        loader = ConfigLoader(Path("config/chart.yaml"))
        config = loader.load()
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize loader.

        Args:
            config_path: YAML file; None loads defaults plus environment
        """
        self.config_path = config_path
        logger.info(f"Initialized ConfigLoader with config_path: {config_path}")

    def load(self) -> ChartConfig:
        """
        Load and validate the chart configuration.

        Returns:
            Validated ChartConfig

        Raises:
            ValueError: If the file cannot be read or validation fails
        """
        raw = {}
        if self.config_path is not None:
            try:
                with open(self.config_path) as f:
                    raw = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to load {self.config_path}: {e}")
                raise ValueError(f"Failed to load {self.config_path}: {e}")

            if not isinstance(raw, dict):
                raise ValueError(f"Config {self.config_path} must be a mapping")

            # allow the settings to live under a "chart" section
            raw = raw.get("chart", raw)

        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value is not None:
                logger.debug(f"Overriding {key} from {env_name}")
                raw[key] = value

        config = ChartConfig(**raw)

        logger.info(
            f"Loaded chart config: max_ticks={config.max_ticks}, "
            f"timezone={config.timezone}, {len(config.crypto_currencies)} crypto currencies"
        )
        return config
