from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

from wallet_constants import UNIT_ALIASES, UNITS
from wallet_errors import ArgumentError


def _resolve_unit(unit: str) -> str:
    if isinstance(unit, str):
        if unit in UNITS:
            return unit
        resolved = UNIT_ALIASES.get(unit.lower())
        if resolved is not None:
            return resolved
    raise ArgumentError(f"Unknown display unit: {unit!r}. Expected one of {sorted(UNITS)}.")


def _to_decimal(satoshis: Any) -> Decimal:
    if isinstance(satoshis, bool) or not isinstance(satoshis, (int, float, Decimal, str)):
        raise ArgumentError(f"Amount must be numeric, got {type(satoshis).__name__}.")
    try:
        value = Decimal(str(satoshis).strip()) if isinstance(satoshis, str) else Decimal(satoshis)
    except InvalidOperation as exc:
        raise ArgumentError(f"Amount must be numeric, got {satoshis!r}.") from exc
    if not value.is_finite():
        raise ArgumentError(f"Amount must be finite, got {satoshis!r}.")
    return value


def _group_thousands(digits: str, separator: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return separator.join(groups)


def format_amount(
    satoshis: int | Decimal | str,
    unit: str,
    thousands_separator: str = ",",
    decimal_separator: str = ".",
    full_precision: bool = False,
) -> str:
    """
    Render a satoshi amount in a display unit.

    Truncates toward zero to the unit's maximum decimals, then strips
    trailing zeros down to its minimum decimals.

    Examples:
        format_amount(123456789, "BTC") -> "1.23456789"
        format_amount(100000000, "BTC") -> "1.00"
        format_amount(123456789, "bits") -> "1,234,567"
    """
    unit = _resolve_unit(unit)
    unit_info = UNITS[unit]
    profile = unit_info["full" if full_precision else "short"]
    max_decimals = profile["max_decimals"]
    min_decimals = profile["min_decimals"]

    value = _to_decimal(satoshis) / Decimal(unit_info["to_satoshis"])
    value = value.quantize(Decimal(1).scaleb(-max_decimals), rounding=ROUND_DOWN)

    negative = value < 0
    text = f"{abs(value):f}"
    int_part, _, frac_part = text.partition(".")

    frac_part = frac_part.rstrip("0")
    if len(frac_part) < min_decimals:
        frac_part = frac_part.ljust(min_decimals, "0")

    result = _group_thousands(int_part, thousands_separator)
    if frac_part:
        result = f"{result}{decimal_separator}{frac_part}"
    if negative and (int_part.strip("0") or frac_part.strip("0")):
        result = "-" + result
    return result
