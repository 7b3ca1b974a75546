"""Pricing and cancellation engine shared by every booking kind."""

from .cancellation import (
    CancellationDecision,
    evaluate_cancellation,
    refund_preview,
    refund_tier_percent,
    request_cancellation,
)
from .engine import PriceLine, PricingResult, compute_pricing, duration_units
from .errors import (
    ConcurrentModification,
    InvalidPricingInput,
    InvalidStateTransition,
    InvalidTemporalInput,
    NotCancellable,
    PaymentAmountMismatch,
    PricingError,
    SurchargeConfigError,
    UnknownOptionKind,
)
from .money import to_minor_units
from .repricing import (
    apply_changes,
    change_status,
    ensure_mutable,
    reprice_booking,
    requires_repricing,
    validate_booking_dates,
)
from .surcharges import (
    Fixed,
    PerUnit,
    SurchargeRule,
    SurchargeTable,
    get_surcharge_table,
    load_surcharge_table,
    parse_option_flags,
)

__all__ = [
    "CancellationDecision",
    "ConcurrentModification",
    "Fixed",
    "InvalidPricingInput",
    "InvalidStateTransition",
    "InvalidTemporalInput",
    "NotCancellable",
    "PaymentAmountMismatch",
    "PerUnit",
    "PriceLine",
    "PricingError",
    "PricingResult",
    "SurchargeConfigError",
    "SurchargeRule",
    "SurchargeTable",
    "UnknownOptionKind",
    "apply_changes",
    "change_status",
    "compute_pricing",
    "duration_units",
    "ensure_mutable",
    "evaluate_cancellation",
    "get_surcharge_table",
    "load_surcharge_table",
    "parse_option_flags",
    "refund_preview",
    "refund_tier_percent",
    "reprice_booking",
    "request_cancellation",
    "requires_repricing",
    "to_minor_units",
    "validate_booking_dates",
]
