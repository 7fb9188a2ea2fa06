"""
Config Module

YAML chart configuration loading and validation.
"""

from .loader import ConfigLoader, ChartConfig

__all__ = [
    "ConfigLoader",
    "ChartConfig",
]
