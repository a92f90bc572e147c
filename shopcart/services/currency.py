"""
Money formatting.

Turns Decimal amounts into display strings for a locale, either with the
currency symbol ("$1,234.50", "1,234.50 ₽") or in international form
("USD 1,234.50").
"""
from decimal import Decimal
from typing import Dict, Optional, Union

from shopcart.services.money import round_money, to_decimal

# Currency symbols mapping
CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "RUB": "₽",
    "EUR": "€",
    "UAH": "₴",
    "TRY": "₺",
    "INR": "₹",
    "AED": "د.إ",
    "GBP": "£",
    "CNY": "¥",
    "JPY": "¥",
    "KRW": "₩",
    "BRL": "R$",
}

# Currencies that should be displayed as integers (no decimals)
INTEGER_CURRENCIES = {"JPY", "KRW"}

# Currencies written with the symbol in front of the amount
PREFIX_SYMBOL_CURRENCIES = {"USD", "EUR", "GBP", "CNY", "JPY", "BRL", "INR"}

# Language to default currency mapping
LANGUAGE_TO_CURRENCY: Dict[str, str] = {
    "ru": "RUB",
    "be": "RUB",
    "kk": "RUB",
    "uk": "UAH",
    "tr": "TRY",
    "hi": "INR",
    "ar": "AED",
    "de": "EUR",
    "fr": "EUR",
    "es": "EUR",
    "it": "EUR",
    "ja": "JPY",
    "ko": "KRW",
    "zh": "CNY",
    "pt": "BRL",
    # All others default to USD
}

# Full locales whose currency differs from the language default
LOCALE_TO_CURRENCY: Dict[str, str] = {
    "en_GB": "GBP",
    "en_IE": "EUR",
    "pt_PT": "EUR",
    "de_CH": "CHF",
}


def _normalize_locale(locale: Optional[str]) -> str:
    if not locale:
        return "en"
    # "en-US" and "en_US.UTF-8" both become "en_US"
    return locale.split(".")[0].replace("-", "_")


class MoneyFormatter:
    """Formats monetary amounts for display."""

    def __init__(self, currency: Optional[str] = None):
        """
        Args:
            currency: Force a currency regardless of locale (e.g. "USD")
        """
        self.currency = currency.upper() if currency else None

    def currency_for(self, locale: Optional[str]) -> str:
        """Resolve the currency code used for a locale."""
        if self.currency:
            return self.currency

        normalized = _normalize_locale(locale)
        if normalized in LOCALE_TO_CURRENCY:
            return LOCALE_TO_CURRENCY[normalized]

        lang = normalized.split("_")[0].lower()
        return LANGUAGE_TO_CURRENCY.get(lang, "USD")

    def format(
        self,
        amount: Union[str, int, float, Decimal],
        locale: Optional[str] = None,
        international: bool = False,
    ) -> str:
        """
        Format an amount.

        Args:
            amount: Amount in major units
            locale: Locale such as "en_US" or "ru"
            international: Use the ISO code instead of the symbol

        Returns:
            Formatted string
        """
        currency = self.currency_for(locale)
        value = to_decimal(amount)

        if currency in INTEGER_CURRENCIES:
            formatted = f"{int(round_money(value, to_int=True)):,}"
        else:
            formatted = f"{round_money(value):,.2f}"

        if international:
            return f"{currency} {formatted}"

        symbol = CURRENCY_SYMBOLS.get(currency, currency)
        if currency in PREFIX_SYMBOL_CURRENCIES:
            if formatted.startswith("-"):
                return f"-{symbol}{formatted[1:]}"
            return f"{symbol}{formatted}"
        return f"{formatted} {symbol}"
