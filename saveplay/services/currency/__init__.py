"""Currency conversion service."""

from saveplay.services.currency.converter import CURRENCY_PREFIXES, CurrencyConverter

__all__ = ["CURRENCY_PREFIXES", "CurrencyConverter"]
