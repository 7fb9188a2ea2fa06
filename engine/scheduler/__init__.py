"""
Scheduler Module

Background stage execution and run cancellation.
"""

from .executor import CancellationToken, ChartUpdateSuperseded, StageExecutor

__all__ = [
    "CancellationToken",
    "ChartUpdateSuperseded",
    "StageExecutor",
]
