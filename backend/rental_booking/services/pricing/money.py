from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from .errors import InvalidPricingInput

_CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """Read a caller-supplied amount; only finite numbers are accepted."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidPricingInput(f"{field} is not a number", {field: "must be a number"})
    if not amount.is_finite():
        raise InvalidPricingInput(f"{field} must be a finite number", {field: "must be a finite number"})
    return amount


def quantize_money(value: Any, field: str = "amount") -> Decimal:
    amount = to_decimal(value)
    if not amount.is_finite():
        raise InvalidPricingInput(f"{field} must be a finite number", {field: "must be a finite number"})
    try:
        return amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits than the decimal context can hold in cents
        raise InvalidPricingInput(f"{field} is too large", {field: "out of range"})


def percent_of(amount: Any, percent: int) -> Decimal:
    return quantize_money(to_decimal(amount) * Decimal(percent) / Decimal(100))


def to_minor_units(amount: Any) -> int:
    """Return ``amount`` in the smallest currency unit (cents) for gateways."""
    return int((quantize_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
