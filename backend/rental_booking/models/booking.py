# backend/rental_booking/models/booking.py

from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, String, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_kind import BookingKind
from .booking_status import BookingStatus, PaymentStatus
from .types import CaseInsensitiveEnum


class Booking(BaseModel):
    """A vehicle reservation, moving-service booking or product order.

    Pricing columns are derived; they are only ever written by
    ``services.pricing.repricing.reprice_booking``.
    """

    __tablename__ = "bookings"

    id              = Column(Integer, primary_key=True, index=True)
    kind            = Column(CaseInsensitiveEnum(BookingKind, name="bookingkind"), nullable=False, index=True)
    user_id         = Column(Integer, nullable=False, index=True)
    catalog_item_id = Column(Integer, ForeignKey("catalog_items.id"), nullable=False)

    start_date    = Column(DateTime, nullable=True, index=True)
    end_date      = Column(DateTime, nullable=True)
    delivery_date = Column(DateTime, nullable=True)

    # Rate snapshotted from the catalog item at creation time
    base_rate = Column(Numeric(10, 2), nullable=False)
    quantity  = Column(Integer, nullable=False, default=1)
    deposit   = Column(Numeric(10, 2), nullable=False, default=0)
    selected_options = Column(JSON, nullable=False, default=list)

    # Derived pricing
    duration_units    = Column(Integer, nullable=False, default=1)
    subtotal          = Column(Numeric(10, 2), nullable=False, default=0)
    options_price     = Column(Numeric(10, 2), nullable=False, default=0)
    discount          = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount      = Column(Numeric(10, 2), nullable=False, default=0)
    surcharge_version = Column(String, nullable=True)

    status = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )

    cancellation_requested_at = Column(DateTime, nullable=True)
    cancellation_reason       = Column(String(200), nullable=True)
    refund_amount             = Column(Numeric(10, 2), nullable=True)

    payment_status = Column(
        CaseInsensitiveEnum(PaymentStatus, name="paymentstatus"),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    payment_method = Column(String, nullable=True)

    # Optimistic concurrency: every UPDATE checks and bumps this counter
    version_id = Column(Integer, nullable=False)

    catalog_item = relationship("CatalogItem")

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def target_date(self):
        """Date the cancellation window is measured against."""
        if self.kind == BookingKind.PRODUCT_ORDER:
            return self.delivery_date
        return self.start_date
