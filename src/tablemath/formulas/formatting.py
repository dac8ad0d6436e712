"""Locale-aware rendering of computed values."""

import copy
import decimal
import logging
from typing import Optional

from babel import Locale, UnknownLocaleError
from babel.numbers import NumberPattern, UnknownCurrencyError, parse_pattern

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"


def _load_locale(tag: str) -> Locale:
    """Parse a BCP 47 style tag such as "de-DE", falling back to en-US."""
    try:
        return Locale.parse(tag.replace("_", "-"), sep="-")
    except (UnknownLocaleError, ValueError, TypeError):
        logger.warning(f"Unknown locale {tag!r}, using {DEFAULT_LOCALE}")
        return Locale.parse(DEFAULT_LOCALE, sep="-")


def _with_fraction(pattern: NumberPattern, minimum: int, maximum: int) -> NumberPattern:
    adjusted = copy.copy(pattern)
    adjusted.frac_prec = (minimum, maximum)
    return adjusted


class NumberFormatter:
    """
    Render numbers the way table cells display them.

    With a currency code the value is shown as localized currency with
    exactly ``precision`` fraction digits. Without one it is shown as a
    localized decimal with at most ``precision`` fraction digits and no
    forced trailing zeros. Halves round away from zero.
    """

    def __init__(self, precision: int = 2, locale: str = DEFAULT_LOCALE):
        self.precision = max(0, min(10, precision))
        self.locale_tag = locale
        self._locale = _load_locale(locale)
        self._decimal_pattern = parse_pattern(self._locale.decimal_formats[None].pattern)
        self._currency_pattern = parse_pattern(
            self._locale.currency_formats["standard"].pattern
        )

    def format(self, value: float, currency: Optional[str] = None) -> str:
        """Format a computed value, optionally as a currency amount."""
        number = decimal.Decimal(repr(float(value)))
        with decimal.localcontext() as ctx:
            ctx.rounding = decimal.ROUND_HALF_UP
            if currency:
                try:
                    return self._format_currency(number, currency.upper())
                except (UnknownCurrencyError, ValueError, KeyError):
                    logger.debug(f"Cannot format currency {currency!r}, using plain number")
                    pattern = _with_fraction(
                        self._decimal_pattern, self.precision, self.precision
                    )
                    return pattern.apply(number, self._locale)

            pattern = _with_fraction(self._decimal_pattern, 0, self.precision)
            return pattern.apply(number, self._locale)

    def _format_currency(self, number: decimal.Decimal, currency: str) -> str:
        if not currency.isalpha() or len(currency) != 3:
            raise ValueError(f"Invalid currency code {currency!r}")
        pattern = _with_fraction(self._currency_pattern, self.precision, self.precision)
        return pattern.apply(number, self._locale, currency=currency, currency_digits=False)
