"""Locale aware price formatting for listing prices."""

from __future__ import annotations

from decimal import Decimal

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
    "BRL": "R$",
    "PLN": "zł",
    "RUB": "₽",
    "TRY": "₺",
    "CNY": "¥",
}

COUNTRY_CURRENCIES: dict[str, str] = {
    "US": "USD",
    "GB": "GBP",
    "CA": "CAD",
    "AU": "AUD",
    "BR": "BRL",
    "PL": "PLN",
    "JP": "JPY",
    "RU": "RUB",
    "TR": "TRY",
    "CN": "CNY",
    "DE": "EUR",
    "FR": "EUR",
    "ES": "EUR",
    "IT": "EUR",
    "NL": "EUR",
    "AT": "EUR",
    "BE": "EUR",
    "FI": "EUR",
    "IE": "EUR",
    "PT": "EUR",
}

# Languages that write 1.234,56 rather than 1,234.56
COMMA_DECIMAL_LANGUAGES = frozenset({"de", "fr", "es", "it", "pt", "pl", "nl", "ru", "tr", "fi"})


def currency_for_locale(locale: str) -> str:
    """
    Return the ISO currency code used in a locale's country.

    Args:
        locale: Locale in ``language_COUNTRY`` form.

    Returns:
        Currency code, USD when the country is unknown.
    """
    _, _, country = locale.partition("_")
    return COUNTRY_CURRENCIES.get(country.upper(), "USD")


def format_price(
    amount_minor: int,
    decimals: int,
    currency_code: str,
    locale: str = "en_US",
) -> str:
    """
    Format a price given in minor units.

    Args:
        amount_minor: Price without a decimal point, e.g. 1999 for 19.99.
        decimals: Number of minor unit digits.
        currency_code: ISO currency code.
        locale: Locale in ``language_COUNTRY`` form.

    Returns:
        Formatted price, e.g. ``$19.99`` or ``19,99 €``.

    Raises:
        ValueError: If decimals is negative.
    """
    if decimals < 0:
        msg = "decimals cannot be negative"
        raise ValueError(msg)

    amount = Decimal(amount_minor).scaleb(-decimals)
    number = f"{amount:,.{decimals}f}"
    symbol = CURRENCY_SYMBOLS.get(currency_code.upper(), currency_code.upper())

    language = locale.partition("_")[0].lower()
    if language in COMMA_DECIMAL_LANGUAGES:
        number = number.replace(",", "\0").replace(".", ",").replace("\0", ".")
        return f"{number} {symbol}"
    return f"{symbol}{number}"
