"""Error taxonomy for the pricing and cancellation engine.

Every rejection the engine produces is one of these. The HTTP layer maps them
onto status codes with :func:`rental_booking.utils.errors.error_response`; no
other exception type is raised across the engine boundary.
"""

from __future__ import annotations

from typing import Dict, Optional


class PricingError(Exception):
    """Base class carrying a user-facing message and per-field details."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field_errors: Dict[str, str] = dict(field_errors or {})


class UnknownOptionKind(PricingError):
    """An option flag has no surcharge rule for the booking's domain."""

    def __init__(self, option: str, kind: Optional[str] = None) -> None:
        where = f" for {kind} bookings" if kind else ""
        super().__init__(
            f"Unknown option '{option}'{where}",
            {"selected_options": f"unsupported option: {option}"},
        )
        self.option = option


class InvalidTemporalInput(PricingError):
    """Dates break the ordering or future-start rules."""


class InvalidPricingInput(PricingError):
    """Negative rates/discounts or an attempt to write derived pricing fields."""


class NotCancellable(PricingError):
    """The minimum lead time before the start/delivery date has passed."""


class InvalidStateTransition(PricingError):
    """The booking's status does not allow the requested change."""


class ConcurrentModification(PricingError):
    """Another writer updated the booking since it was read."""


class PaymentAmountMismatch(PricingError):
    """A payment amount differs from the booking's computed total."""


class SurchargeConfigError(PricingError):
    """The surcharge table file is missing or malformed."""
