"""Tests for locale-aware number formatting."""

from tablemath.formulas.formatting import NumberFormatter


class TestNumberFormatter:
    """Test rendering of computed values."""

    def test_currency_uses_fixed_precision(self):
        formatter = NumberFormatter(precision=2, locale="en-US")
        assert formatter.format(1500, "USD") == "$1,500.00"

    def test_plain_number_drops_trailing_zeros(self):
        formatter = NumberFormatter(precision=2, locale="en-US")
        assert formatter.format(1500) == "1,500"

    def test_plain_number_rounds_to_precision(self):
        formatter = NumberFormatter(precision=2, locale="en-US")
        assert formatter.format(1234.5678) == "1,234.57"
        assert formatter.format(2.5) == "2.5"

    def test_halves_round_up(self):
        formatter = NumberFormatter(precision=0, locale="en-US")
        assert formatter.format(2.5) == "3"

    def test_zero_precision_currency(self):
        formatter = NumberFormatter(precision=0, locale="en-US")
        assert formatter.format(1500.4, "USD") == "$1,500"

    def test_german_locale(self):
        formatter = NumberFormatter(precision=2, locale="de-DE")
        assert formatter.format(1234.5) == "1.234,5"
        assert formatter.format(1500, "EUR") == "1.500,00\xa0€"

    def test_negative_currency(self):
        formatter = NumberFormatter(precision=2, locale="en-US")
        assert formatter.format(-5, "USD") == "-$5.00"

    def test_unknown_locale_falls_back(self):
        formatter = NumberFormatter(precision=2, locale="not-a-locale")
        assert formatter.format(1500) == "1,500"

    def test_invalid_currency_falls_back_to_fixed_number(self):
        formatter = NumberFormatter(precision=2, locale="en-US")
        assert formatter.format(1500, "US1") == "1,500.00"

    def test_precision_is_clamped(self):
        assert NumberFormatter(precision=42).precision == 10
        assert NumberFormatter(precision=-1).precision == 0
