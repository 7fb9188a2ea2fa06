"""
Currency Metadata Adapter

Answers whether a currency code denotes a cryptocurrency. The chart core only
depends on the CurrencyClassifier protocol; StaticCurrencyClassifier serves a
fixed set of codes from configuration.
"""

import logging
from typing import Iterable, Protocol

logger = logging.getLogger(__name__)

DEFAULT_CRYPTO_CURRENCIES = (
    "BSQ",
    "XMR",
    "ETH",
    "LTC",
    "DASH",
    "ZEC",
    "DOGE",
    "ETC",
    "BCH",
    "L-BTC",
    "LNBTC",
)


class CurrencyClassifier(Protocol):
    """Protocol for currency metadata lookups"""

    def is_crypto_currency(self, currency_code: str) -> bool:
        ...


class StaticCurrencyClassifier:
    """
    Classifies currencies against a fixed set of cryptocurrency codes.

    Codes are compared case-insensitively; anything not listed is fiat.
    """

    def __init__(self, crypto_currencies: Iterable[str] = DEFAULT_CRYPTO_CURRENCIES):
        self._crypto = frozenset(code.upper() for code in crypto_currencies)
        logger.debug(f"Initialized StaticCurrencyClassifier with {len(self._crypto)} crypto codes")

    def is_crypto_currency(self, currency_code: str) -> bool:
        return currency_code.upper() in self._crypto
