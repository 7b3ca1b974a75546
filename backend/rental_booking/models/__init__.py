from .booking_kind import BookingKind
from .booking_status import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    CANCELLABLE_STATUSES,
    TERMINAL_STATUSES,
)
from .option_kind import OptionKind
from .catalog import CatalogItem, RateUnit
from .booking import Booking

__all__ = [
    "Booking",
    "BookingKind",
    "BookingStatus",
    "CatalogItem",
    "OptionKind",
    "PaymentMethod",
    "PaymentStatus",
    "RateUnit",
    "CANCELLABLE_STATUSES",
    "TERMINAL_STATUSES",
]
