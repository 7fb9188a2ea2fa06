"""
Runtime Module

Chart coordinator and runner entry point.
"""

from .coordinator import ChartCoordinator

__all__ = [
    "ChartCoordinator",
]
