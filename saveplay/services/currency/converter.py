"""
Currency Normalizer

Every amount is stored in one canonical currency (USD). Users may type
amounts in Dominican pesos (DOP) and may choose either currency for
display. Conversion uses a single fixed rate: 1 USD = R DOP.

DESIGN DECISION: Conversion works on Decimal and never rounds the stored
value. Rounding happens only when formatting for display, so
to_canonical(to_display(x)) gives x back.
"""

from decimal import Decimal
from typing import Any, Optional

from saveplay.config import get_settings
from saveplay.errors import ValidationError
from saveplay.models.finance import Currency, ValidationIssue
from saveplay.validation import as_decimal


CURRENCY_PREFIXES = {
    Currency.USD: "$",
    Currency.DOP: "RD$",
}


class CurrencyConverter:
    """
    Fixed-rate converter between the canonical and display currencies.

    Args:
        usd_to_dop_rate: Override the configured rate (tests, previews).
    """

    def __init__(self, usd_to_dop_rate: Optional[Decimal] = None):
        if usd_to_dop_rate is None:
            usd_to_dop_rate = get_settings().currency.usd_to_dop_rate
        rate = as_decimal(usd_to_dop_rate)
        if rate is None or rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {usd_to_dop_rate!r}")
        self._rate = rate

    @property
    def rate(self) -> Decimal:
        return self._rate

    def to_canonical(self, amount: Any, source_currency: Currency = Currency.USD) -> Decimal:
        """
        Convert a user-entered positive amount to USD.

        Raises:
            ValidationError: If the amount is not a positive number
        """
        value = as_decimal(amount)
        if value is None or value <= 0:
            raise ValidationError([ValidationIssue(
                field="amount",
                issue_type="not_positive",
                message="Amount must be a number greater than zero",
            )])

        if Currency(source_currency) == Currency.DOP:
            return value / self._rate
        return value

    def to_display(self, amount: Any, display_currency: Currency = Currency.USD) -> Decimal:
        """Convert a canonical USD amount to the display currency."""
        value = as_decimal(amount)
        if value is None:
            raise ValueError(f"Not a number: {amount!r}")

        if Currency(display_currency) == Currency.DOP:
            return value * self._rate
        return value

    def format(self, amount: Any, display_currency: Currency = Currency.USD) -> str:
        """
        Render a canonical amount in the display currency.

        Uses en-US grouping and two decimals: $1,234.50, RD$69,031.00,
        -$12.00 for negatives.
        """
        currency = Currency(display_currency)
        converted = self.to_display(amount, currency)
        prefix = CURRENCY_PREFIXES[currency]
        sign = "-" if converted < 0 else ""
        return f"{sign}{prefix}{abs(converted):,.2f}"
