"""Money helpers: minor-unit conversion, validation and formatting"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from numbers import Number
from typing import List

from ledger_engine.config import settings
from ledger_engine.domain.exceptions import ValidationError

_COMPACT_SUFFIXES = [
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
]


def _to_decimal(value, field: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (Number, Decimal)):
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field)
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field} must be finite", field=field)
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"{field} is not a valid amount", field=field) from e
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite", field=field)
    return amount


def to_minor_units(value, exponent: int | None = None, field: str = "amount") -> int:
    """
    Convert a plain number in major units to integer minor units.

    Rounds half-up to the currency's minor unit, so 12.345 USD -> 1235.
    Sign is preserved; range checks belong to ensure_amount().
    """
    if exponent is None:
        exponent = settings.currency_exponent
    amount = _to_decimal(value, field).scaleb(exponent)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int, exponent: int | None = None) -> Decimal:
    """Convert integer minor units back to a Decimal in major units"""
    if exponent is None:
        exponent = settings.currency_exponent
    return Decimal(amount).scaleb(-exponent)


def ensure_amount(value, field: str, allow_zero: bool = True) -> int:
    """
    Validate an amount already expressed in minor units.

    Accepts ints and integral finite floats/Decimals. Never clamps: negative,
    fractional or non-finite input raises ValidationError naming the field.
    """
    amount = _to_decimal(value, field)
    if amount != amount.to_integral_value():
        raise ValidationError(f"{field} must be a whole number of minor units", field=field)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    if not allow_zero and amount == 0:
        raise ValidationError(f"{field} must be greater than zero", field=field)
    return int(amount)


def split_evenly(total: int, parts: int) -> List[int]:
    """
    Split total into parts equal shares rounded down; the last share takes
    the remainder.

    Example:
        100000 / 3 -> [33333, 33333, 33334]
    """
    base = total // parts
    remainder = total % parts
    return [base + (remainder if i == parts - 1 else 0) for i in range(parts)]


def format_currency(amount: int, compact: bool = False, currency: str | None = None) -> str:
    """Render minor units as e.g. 'UGX 1,250,000' or compact 'UGX 1.3M'"""
    currency = currency or settings.currency_code
    exponent = settings.currency_exponent
    value = from_minor_units(amount, exponent)
    sign = "-" if value < 0 else ""
    value = abs(value)

    if compact:
        for threshold, suffix in _COMPACT_SUFFIXES:
            if value >= threshold:
                scaled = (value / threshold).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
                text = f"{scaled:f}".rstrip("0").rstrip(".")
                return f"{currency} {sign}{text}{suffix}"

    quantum = Decimal(1).scaleb(-exponent)
    return f"{currency} {sign}{value.quantize(quantum, rounding=ROUND_HALF_UP):,}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"
