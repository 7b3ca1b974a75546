"""Recompute contract between the persistence layer and the pricing engine.

Callers apply a change set through :func:`apply_changes` (or call
:func:`reprice_booking` themselves) before committing. Pricing is always
recomputed from the booking's inputs, never patched incrementally, so
repeating the call with unchanged inputs leaves every pricing field as it
was.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ...models.booking_kind import BookingKind
from ...models.booking_status import BookingStatus, TERMINAL_STATUSES
from .engine import PricingResult, compute_pricing
from .errors import InvalidPricingInput, InvalidStateTransition, InvalidTemporalInput, PricingError
from .money import parse_amount, quantize_money
from .surcharges import SurchargeTable, get_surcharge_table, parse_option_flags

logger = logging.getLogger(__name__)

PRICING_FIELDS = frozenset(
    {
        "start_date",
        "end_date",
        "delivery_date",
        "base_rate",
        "selected_options",
        "discount",
    }
)

DERIVED_FIELDS = frozenset(
    {
        "duration_units",
        "subtotal",
        "options_price",
        "total_amount",
        "surcharge_version",
        "refund_amount",
        "status",
        "cancellation_requested_at",
    }
)

# Status changes allowed outside of the cancellation flow
STATUS_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.REJECTED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
}


def requires_repricing(changes: Mapping[str, Any]) -> bool:
    return any(key in PRICING_FIELDS for key in changes)


def ensure_mutable(booking) -> None:
    status = BookingStatus(booking.status)
    if status in TERMINAL_STATUSES:
        raise InvalidStateTransition(
            f"A {status.value} booking can no longer be modified",
            {"status": status.value},
        )


def validate_booking_dates(
    kind: BookingKind,
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    delivery_date: Optional[datetime],
    now: datetime,
    *,
    require_future: bool = True,
) -> None:
    """Check date presence and ordering for a booking of ``kind``.

    ``require_future`` is set on creation and whenever the start (or
    delivery) date itself is changed.
    """
    errors: Dict[str, str] = {}
    if BookingKind(kind).uses_delivery_date:
        if delivery_date is None:
            errors["delivery_date"] = "required"
        elif require_future and delivery_date <= now:
            errors["delivery_date"] = "must be in the future"
    else:
        if start_date is None:
            errors["start_date"] = "required"
        if end_date is None:
            errors["end_date"] = "required"
        if start_date is not None and require_future and start_date <= now:
            errors["start_date"] = "must be in the future"
    if start_date is not None and end_date is not None and end_date <= start_date:
        errors["end_date"] = "must be after start_date"
    if errors:
        raise InvalidTemporalInput("Invalid booking dates", errors)


def _price_window(booking):
    if BookingKind(booking.kind).uses_delivery_date:
        # Product orders are single-date: one unit regardless of dates
        return booking.delivery_date, None
    return booking.start_date, booking.end_date


def reprice_booking(booking, table: Optional[SurchargeTable] = None) -> PricingResult:
    """Recompute and overwrite every pricing field of ``booking``.

    Nothing is written when the engine raises.
    """
    table = table or get_surcharge_table()
    start, end = _price_window(booking)
    result = compute_pricing(
        start,
        end,
        booking.base_rate,
        booking.selected_options or [],
        booking.discount or 0,
        rules=table.rules_for(booking.kind),
    )
    booking.duration_units = result.duration_units
    booking.subtotal = result.subtotal
    booking.options_price = result.options_price
    booking.discount = result.discount
    booking.total_amount = result.total_amount
    booking.surcharge_version = table.version
    logger.debug(
        "Repriced booking %s: units=%s subtotal=%s options=%s total=%s",
        getattr(booking, "id", None),
        result.duration_units,
        result.subtotal,
        result.options_price,
        result.total_amount,
    )
    return result


def normalize_options(selected_options: Any) -> list[str]:
    """Stored form of a selection: sorted, deduplicated option values."""
    return sorted(o.value for o in parse_option_flags(selected_options))


def apply_changes(
    booking,
    changes: Mapping[str, Any],
    now: datetime,
    table: Optional[SurchargeTable] = None,
) -> Optional[PricingResult]:
    """Apply caller-supplied changes to ``booking`` and reprice if needed.

    Returns the new pricing, or ``None`` when no pricing input changed.
    """
    derived = sorted(key for key in changes if key in DERIVED_FIELDS)
    if derived:
        raise InvalidPricingInput(
            "Derived pricing fields cannot be set directly",
            {key: "read-only" for key in derived},
        )
    if not changes:
        return None
    ensure_mutable(booking)

    updates = dict(changes)
    if "selected_options" in updates:
        updates["selected_options"] = normalize_options(updates["selected_options"])
    if "discount" in updates:
        discount = parse_amount(updates["discount"] or 0, "discount")
        updates["discount"] = quantize_money(discount, "discount")
    if "base_rate" in updates:
        rate = parse_amount(updates["base_rate"], "base_rate")
        updates["base_rate"] = quantize_money(rate, "base_rate")

    if {"start_date", "end_date", "delivery_date"} & updates.keys():
        moved_target = "start_date" in updates or "delivery_date" in updates
        validate_booking_dates(
            booking.kind,
            updates.get("start_date", booking.start_date),
            updates.get("end_date", booking.end_date),
            updates.get("delivery_date", booking.delivery_date),
            now,
            require_future=moved_target,
        )

    if not requires_repricing(updates):
        for key, value in updates.items():
            setattr(booking, key, value)
        return None

    # Restore the previous inputs when repricing fails; no partial write.
    previous = {key: getattr(booking, key) for key in updates}
    for key, value in updates.items():
        setattr(booking, key, value)
    try:
        return reprice_booking(booking, table)
    except PricingError:
        for key, value in previous.items():
            setattr(booking, key, value)
        raise


def change_status(booking, new_status: BookingStatus) -> None:
    """Move a booking along its lifecycle (confirm, reject, start, complete).

    Cancellation has its own flow with refund rules and is refused here.
    """
    current = BookingStatus(booking.status)
    target = BookingStatus(new_status)
    if target == current:
        return
    if target is BookingStatus.CANCELLED:
        raise InvalidStateTransition(
            "Use the cancellation request to cancel a booking",
            {"status": target.value},
        )
    if target not in STATUS_TRANSITIONS.get(current, frozenset()):
        raise InvalidStateTransition(
            f"Cannot move a booking from {current.value} to {target.value}",
            {"status": target.value},
        )
    booking.status = target
    logger.info("Booking %s status %s -> %s", getattr(booking, "id", None), current.value, target.value)
