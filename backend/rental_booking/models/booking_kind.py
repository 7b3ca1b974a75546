import enum


class BookingKind(str, enum.Enum):
    """Which catalog a booking was made against.

    Each kind has its own option set and surcharge amounts; ``insurance`` for a
    vehicle is billed per day while moving insurance is a flat fee.
    """
    VEHICLE_RENTAL = "vehicle_rental"
    MOVING_SERVICE = "moving_service"
    PRODUCT_ORDER = "product_order"

    @property
    def uses_delivery_date(self) -> bool:
        return self is BookingKind.PRODUCT_ORDER
