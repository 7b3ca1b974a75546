import enum
from typing import Optional


class OptionKind(str, enum.Enum):
    INSURANCE = "insurance"
    GPS = "gps"
    CHILD_SEAT = "child_seat"
    ADDITIONAL_DRIVER = "additional_driver"
    UNLIMITED_MILEAGE = "unlimited_mileage"
    PACKING = "packing"
    UNPACKING = "unpacking"
    FURNITURE = "furniture"
    DELIVERY = "delivery"
    SETUP = "setup"
    MOVING_KIT = "moving_kit"

    @classmethod
    def lookup(cls, name: str) -> Optional["OptionKind"]:
        """Return the kind for a flag name, accepting legacy camelCase keys."""
        if isinstance(name, cls):
            return name
        key = str(name).strip()
        key = _LEGACY_ALIASES.get(key, key).lower().replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            return None


# Flag names used by older clients; they map onto the same kind so a payload
# sending both spellings still prices the option once.
_LEGACY_ALIASES = {
    "childSeat": "child_seat",
    "additionalDriver": "additional_driver",
    "unlimitedMileage": "unlimited_mileage",
    "movingKit": "moving_kit",
}
