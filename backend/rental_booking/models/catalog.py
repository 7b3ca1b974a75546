import enum

from sqlalchemy import Boolean, Column, Integer, Numeric, String

from .base import BaseModel
from .booking_kind import BookingKind
from .types import CaseInsensitiveEnum


class RateUnit(str, enum.Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    UNIT = "unit"


class CatalogItem(BaseModel):
    """A bookable vehicle, moving service or product with its current price."""

    __tablename__ = "catalog_items"

    id         = Column(Integer, primary_key=True, index=True)
    kind       = Column(CaseInsensitiveEnum(BookingKind, name="catalogkind"), nullable=False, index=True)
    name       = Column(String(100), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    unit       = Column(CaseInsensitiveEnum(RateUnit, name="rateunit"), nullable=False, default=RateUnit.DAY)
    deposit    = Column(Numeric(10, 2), nullable=False, default=0)
    is_active  = Column(Boolean, nullable=False, default=True)
