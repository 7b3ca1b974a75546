from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple, Union

from ...models.option_kind import OptionKind
from .errors import InvalidPricingInput, InvalidTemporalInput, UnknownOptionKind
from .money import ZERO, parse_amount, quantize_money
from .surcharges import OPTION_LABELS, OptionRules, parse_option_flags

ONE_DAY = timedelta(days=1)


def ceil_days(delta: timedelta) -> int:
    """Whole days in ``delta``, counting any partial day as a full one."""
    days, remainder = divmod(delta, ONE_DAY)
    return days + 1 if remainder else days


@dataclass(frozen=True)
class PriceLine:
    key: str
    label: str
    amount: Decimal


@dataclass(frozen=True)
class PricingResult:
    duration_units: int
    subtotal: Decimal
    options_price: Decimal
    discount: Decimal
    total_amount: Decimal
    lines: Tuple[PriceLine, ...] = ()


def duration_units(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole days between ``start`` and ``end``, rounded up, never below 1.

    Single-date bookings (no end date) count as one unit.
    """
    if start is None or end is None:
        return 1
    if end <= start:
        raise InvalidTemporalInput(
            "End date must be after start date",
            {"end_date": "must be after start_date"},
        )
    return max(1, ceil_days(end - start))


def compute_pricing(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    base_rate: Any,
    selected_options: Union[Iterable[Union[str, OptionKind]], None],
    discount: Any = ZERO,
    *,
    rules: OptionRules,
) -> PricingResult:
    """Compute a booking's pricing from scratch.

    ``selected_options`` is treated as a set: an option contributes once no
    matter how often, or under how many spellings, it is listed. Every
    option is checked against ``rules`` before anything is summed, so an
    unknown option never yields a partial result. The total is not clamped;
    a discount larger than the gross amount produces a negative total.
    """
    rate = parse_amount(base_rate, "base_rate")
    disc = parse_amount(ZERO if discount is None else discount, "discount")
    if rate < 0:
        raise InvalidPricingInput("Base rate cannot be negative", {"base_rate": "must be >= 0"})
    if disc < 0:
        raise InvalidPricingInput("Discount cannot be negative", {"discount": "must be >= 0"})

    options = parse_option_flags(selected_options)
    missing = sorted(o.value for o in options if o not in rules)
    if missing:
        raise UnknownOptionKind(missing[0])

    units = duration_units(start_date, end_date)
    subtotal = quantize_money(rate * units, "base_rate")
    lines = [PriceLine("base", f"Base rate x{units}", subtotal)]

    options_price = ZERO
    # Sorted so the itemised breakdown is stable across calls
    for option in sorted(options, key=lambda o: o.value):
        amount = rules[option].contribution(units)
        options_price += amount
        lines.append(PriceLine(option.value, OPTION_LABELS.get(option, option.value), amount))

    disc = quantize_money(disc, "discount")
    if disc:
        lines.append(PriceLine("discount", "Discount", -disc))

    total = quantize_money(subtotal + options_price - disc)
    return PricingResult(
        duration_units=units,
        subtotal=subtotal,
        options_price=quantize_money(options_price),
        discount=disc,
        total_amount=total,
        lines=tuple(lines),
    )
