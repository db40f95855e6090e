# Overview: Exact decimal arithmetic for money and stock quantities.

"""
Money and quantity helpers.

All monetary amounts are ``Decimal`` quantized to 2 places and stock
quantities to 3 places, both with ROUND_HALF_UP. Binary floats are only
accepted at the edge and are converted through ``str`` so that 0.1 stays 0.1.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

DEFAULT_ROUNDING = ROUND_HALF_UP
MONEY_PLACES = Decimal("0.01")
QUANTITY_PLACES = Decimal("0.001")
ZERO = Decimal("0")

# Journal debit/credit totals may differ by at most this amount
BALANCE_TOLERANCE = Decimal("0.0001")


def to_decimal(value, *, field: str = "value") -> Decimal:
    """Parse ``value`` into a Decimal or raise ValidationError naming ``field``."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", details={field: "must be a number"})
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number", details={field: "must be a number"})
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", details={field: "must be a number"})
    return result


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_PLACES, rounding=DEFAULT_ROUNDING)


def round_quantity(value: Decimal) -> Decimal:
    return value.quantize(QUANTITY_PLACES, rounding=DEFAULT_ROUNDING)


def to_money(value, *, field: str = "amount", allow_zero: bool = True) -> Decimal:
    amount = round_money(to_decimal(value, field=field))
    if amount < ZERO or (amount == ZERO and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValidationError(f"{field} must be {qualifier}", details={field: f"must be {qualifier}"})
    return amount


def to_quantity(value, *, field: str = "quantity") -> Decimal:
    """Quantities are always strictly positive."""
    qty = round_quantity(to_decimal(value, field=field))
    if qty <= ZERO:
        raise ValidationError(f"{field} must be positive", details={field: "must be positive"})
    return qty


def line_total(quantity: Decimal, unit_amount: Decimal) -> Decimal:
    return round_money(quantity * unit_amount)


def money_str(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(round_money(Decimal(value)))


def quantity_str(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(round_quantity(Decimal(value)))
