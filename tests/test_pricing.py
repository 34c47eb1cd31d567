"""Tests for price formatting."""

from __future__ import annotations

import pytest

from gamefinder.listings.pricing import currency_for_locale, format_price


class TestCurrencyForLocale:
    """Tests for currency_for_locale."""

    @pytest.mark.parametrize(
        ("locale", "expected"),
        [("en_US", "USD"), ("de_DE", "EUR"), ("en_GB", "GBP"), ("pl_PL", "PLN"), ("xx_ZZ", "USD")],
    )
    def test_currency(self, locale: str, expected: str) -> None:
        """Currency should follow the locale's country."""
        assert currency_for_locale(locale) == expected


class TestFormatPrice:
    """Tests for format_price."""

    def test_us_dollars(self) -> None:
        """Dollar prices use a leading symbol and a decimal point."""
        assert format_price(1999, 2, "USD") == "$19.99"

    def test_thousands_separator(self) -> None:
        """Large prices get a thousands separator."""
        assert format_price(123456, 2, "USD", "en_US") == "$1,234.56"

    def test_comma_decimal_language(self) -> None:
        """German prices swap separators and trail the symbol."""
        assert format_price(123456, 2, "EUR", "de_DE") == "1.234,56 €"

    def test_zero_decimals(self) -> None:
        """Currencies without minor units are printed whole."""
        assert format_price(1980, 0, "JPY", "ja_JP") == "¥1,980"

    def test_unknown_currency_uses_code(self) -> None:
        """An unknown currency code is used as its own symbol."""
        assert format_price(500, 2, "chf") == "CHF5.00"

    def test_negative_decimals_rejected(self) -> None:
        """Negative decimals should raise ValueError."""
        with pytest.raises(ValueError, match="decimals cannot be negative"):
            format_price(100, -1, "USD")
