"""Aritmética de precios del catálogo (margen, beneficio, formato moneda)."""

from __future__ import annotations

from typing import Iterable

from core.domain.language import Language
from core.domain.products import ProductBarcode
from core.services.rounding import round_half_up

NBSP = "\u00a0"

CURRENCY_SYMBOLS: dict[str, str] = {
    "EUR": "€",
    "USD": "US$",
    "GBP": "GB£",
    "MXN": "MXN",
    "COP": "COP",
}

_EN_SYMBOLS: dict[str, str] = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "MXN": "MX$",
    "COP": "COP",
}


def profit(price: float, cost: float) -> float:
    return round_half_up(price - cost, 2)


def margin_percent(price: float, cost: float) -> float | None:
    """(precio - coste) / precio * 100 con un decimal; `None` si precio es 0."""

    if not price:
        return None
    return round_half_up((price - cost) / price * 100, 1)


def format_margin(price: float, cost: float) -> str:
    margin = margin_percent(price, cost)
    if margin is None:
        return "N/A"
    return f"{margin:.1f}%"


def _group(integer_digits: str, separator: str, min_grouping: int) -> str:
    # CLDR "es" no agrupa miles con menos de 5 dígitos (1234,56 €).
    if len(integer_digits) < 3 + min_grouping:
        return integer_digits
    groups: list[str] = []
    while len(integer_digits) > 3:
        groups.insert(0, integer_digits[-3:])
        integer_digits = integer_digits[:-3]
    groups.insert(0, integer_digits)
    return separator.join(groups)


def format_number(value: float, language: Language = Language.SPANISH, decimals: int = 2) -> str:
    thousands, decimal = language.separators()
    rounded = round_half_up(abs(value), decimals)
    text = f"{rounded:.{decimals}f}"
    integer, _, fraction = text.partition(".")
    min_grouping = 2 if language is Language.SPANISH else 1
    body = _group(integer, thousands, min_grouping)
    if fraction:
        body = f"{body}{decimal}{fraction}"
    return f"-{body}" if value < 0 and rounded != 0 else body


def format_currency(amount: float, currency: str = "EUR", language: Language = Language.SPANISH) -> str:
    """Equivalente a `Intl.NumberFormat(locale, {style: "currency"})`."""

    code = currency.upper()
    number = format_number(abs(amount), language)
    sign = "-" if amount < 0 and number.strip("0.,") else ""
    if language is Language.SPANISH:
        symbol = CURRENCY_SYMBOLS.get(code, code)
        return f"{sign}{number}{NBSP}{symbol}"
    symbol = _EN_SYMBOLS.get(code, code)
    if len(symbol) > 2 and symbol.isalpha():
        return f"{sign}{symbol}{NBSP}{number}"
    return f"{sign}{symbol}{number}"


def primary_barcode(barcodes: Iterable[ProductBarcode] | None) -> ProductBarcode | None:
    for barcode in barcodes or ():
        if barcode.is_primary:
            return barcode
    return None
