"""Time-windowed cancellation and refund policy.

Refund tiers, by whole days (rounded up) left before the start / delivery
date:

    more than 7 days  -> 90 %
    4 to 7 days       -> 50 %
    3 days or less    ->  0 %

A request must arrive strictly more than ``CANCELLATION_MIN_LEAD_HOURS``
before that date and only pending or confirmed bookings can be cancelled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from ...core.config import settings
from ...models.booking_status import BookingStatus, CANCELLABLE_STATUSES
from .engine import ceil_days
from .errors import InvalidStateTransition, InvalidTemporalInput, NotCancellable
from .money import percent_of

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Cancelled by customer"

# (days strictly greater than, refund percent), checked in order
REFUND_TIERS = ((7, 90), (3, 50))


@dataclass(frozen=True)
class CancellationDecision:
    eligible: bool
    refund_tier_percent: int


def refund_tier_percent(days_remaining: int) -> int:
    for threshold, percent in REFUND_TIERS:
        if days_remaining > threshold:
            return percent
    return 0


def _lead_hours(min_lead_hours: Optional[int]) -> int:
    if min_lead_hours is None:
        return settings.CANCELLATION_MIN_LEAD_HOURS
    return min_lead_hours


def evaluate_cancellation(
    status: BookingStatus,
    now: datetime,
    target_date: Optional[datetime],
    *,
    min_lead_hours: Optional[int] = None,
) -> CancellationDecision:
    """Return whether a booking may be cancelled now and its refund tier."""
    if target_date is None:
        raise InvalidTemporalInput(
            "Booking has no start or delivery date",
            {"start_date": "required to evaluate cancellation"},
        )
    if BookingStatus(status) not in CANCELLABLE_STATUSES:
        return CancellationDecision(eligible=False, refund_tier_percent=0)
    remaining = target_date - now
    if remaining <= timedelta(hours=_lead_hours(min_lead_hours)):
        return CancellationDecision(eligible=False, refund_tier_percent=0)
    return CancellationDecision(
        eligible=True,
        refund_tier_percent=refund_tier_percent(ceil_days(remaining)),
    )


def refund_preview(booking, now: datetime, *, min_lead_hours: Optional[int] = None) -> dict:
    """Describe what cancelling ``booking`` at ``now`` would refund, without changing it."""
    decision = evaluate_cancellation(
        booking.status, now, booking.target_date, min_lead_hours=min_lead_hours
    )
    refund: Decimal = percent_of(booking.total_amount, decision.refund_tier_percent)
    return {
        "eligible": decision.eligible,
        "refund_tier_percent": decision.refund_tier_percent,
        "refund_amount": refund,
    }


def request_cancellation(
    booking,
    reason: Optional[str],
    now: datetime,
    *,
    min_lead_hours: Optional[int] = None,
):
    """Move ``booking`` to cancelled and record the refund it is owed.

    Raises ``InvalidStateTransition`` when the booking is not pending or
    confirmed and ``NotCancellable`` when the lead time has run out. The
    booking is left untouched on either error.
    """
    status = BookingStatus(booking.status)
    if status not in CANCELLABLE_STATUSES:
        raise InvalidStateTransition(
            f"A booking that is {status.value} cannot be cancelled",
            {"status": status.value},
        )
    lead = _lead_hours(min_lead_hours)
    decision = evaluate_cancellation(status, now, booking.target_date, min_lead_hours=lead)
    if not decision.eligible:
        raise NotCancellable(
            f"Cancellations must be requested more than {lead} hours in advance",
            {"start_date": f"less than {lead} hours away"},
        )

    booking.status = BookingStatus.CANCELLED
    booking.cancellation_requested_at = now
    booking.cancellation_reason = (reason or "").strip()[:200] or DEFAULT_CANCELLATION_REASON
    booking.refund_amount = percent_of(booking.total_amount, decision.refund_tier_percent)
    logger.info(
        "Booking %s cancelled: tier=%s%% refund=%s",
        getattr(booking, "id", None),
        decision.refund_tier_percent,
        booking.refund_amount,
    )
    return booking
