"""Exact decimal arithmetic for quantities and prices.

Token amounts carry up to 18 fractional digits and prices up to 10, so every
operation runs in a dedicated context wide enough that products of the
largest stored values are never rounded.
"""
from __future__ import annotations
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Union

from .errors import InvalidNumberFormat

Money = Decimal
DecimalLike = Union[str, int, float, Decimal]

PRECISION = 120

CONTEXT = Context(
    prec=PRECISION,
    rounding=ROUND_HALF_EVEN,
    Emin=-999999,
    Emax=999999,
    traps=[InvalidOperation],
)

ZERO = Decimal("0")


def parse_decimal(value: DecimalLike, field: str | None = None) -> Decimal:
    """Parse *value* into a finite Decimal or raise InvalidNumberFormat."""
    if isinstance(value, bool):
        raise InvalidNumberFormat(value, field, "booleans are not numbers")
    if isinstance(value, Decimal):
        out = value
    elif isinstance(value, int):
        out = Decimal(value)
    elif isinstance(value, float):
        # shortest repr round-trips the float without binary noise
        out = _from_text(str(value), value, field)
    elif isinstance(value, str):
        out = _from_text(value.strip(), value, field)
    else:
        raise InvalidNumberFormat(value, field, f"unsupported type {type(value).__name__}")
    if not out.is_finite():
        raise InvalidNumberFormat(value, field, "not a finite number")
    return out


def _from_text(text: str, original, field: str | None) -> Decimal:
    if not text:
        raise InvalidNumberFormat(original, field, "empty value")
    try:
        return Decimal(text)
    except (InvalidOperation, ValueError) as e:
        raise InvalidNumberFormat(original, field) from e


def add(a: DecimalLike, b: DecimalLike) -> Decimal:
    return CONTEXT.add(parse_decimal(a), parse_decimal(b))


def subtract(a: DecimalLike, b: DecimalLike) -> Decimal:
    return CONTEXT.subtract(parse_decimal(a), parse_decimal(b))


def multiply(a: DecimalLike, b: DecimalLike) -> Decimal:
    return CONTEXT.multiply(parse_decimal(a), parse_decimal(b))


def compare(a: DecimalLike, b: DecimalLike) -> int:
    """Return -1, 0 or 1 as *a* is less than, equal to or greater than *b*."""
    return int(CONTEXT.compare(parse_decimal(a), parse_decimal(b)))


def is_positive(value: DecimalLike) -> bool:
    return compare(value, ZERO) > 0


def total(values) -> Decimal:
    out = ZERO
    for v in values:
        out = add(out, v)
    return out


def format_decimal(value: DecimalLike) -> str:
    """Plain decimal text, never in scientific notation."""
    d = parse_decimal(value)
    if d.is_zero():
        d = abs(d)
    return format(d, "f")
