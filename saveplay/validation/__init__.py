"""Input validation package."""

from saveplay.validation.validator import InputValidator, as_date, as_datetime, as_decimal

__all__ = ["InputValidator", "as_date", "as_datetime", "as_decimal"]
