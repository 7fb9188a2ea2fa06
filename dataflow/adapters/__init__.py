"""
Collaborator Adapters

Protocols and default implementations for the services the chart core
consults but does not own: currency metadata and date label formatting.
"""

from dataflow.adapters.currency import CurrencyClassifier, StaticCurrencyClassifier
from dataflow.adapters.labels import DateRangeFormatter, DefaultDateRangeFormatter

__all__ = [
    "CurrencyClassifier",
    "StaticCurrencyClassifier",
    "DateRangeFormatter",
    "DefaultDateRangeFormatter",
]
