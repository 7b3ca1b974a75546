import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .. import models, schemas
from ..models.booking_status import BookingStatus, PaymentStatus
from ..services.pricing import cancellation, repricing
from ..services.pricing.engine import PricingResult
from ..services.pricing.errors import (
    ConcurrentModification,
    InvalidStateTransition,
    PaymentAmountMismatch,
)
from ..services.pricing.money import parse_amount, quantize_money, to_minor_units
from .crud_catalog import catalog, snapshot_rate

logger = logging.getLogger(__name__)


def _commit(db: Session, db_booking: models.Booking) -> models.Booking:
    """Commit, turning a lost optimistic-lock race into ConcurrentModification."""
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("Concurrent update rejected for booking %s", db_booking.id)
        raise ConcurrentModification(
            "The booking was changed by someone else; reload and try again",
            {"version_id": "stale"},
        )
    db.refresh(db_booking)
    return db_booking


class CRUDBooking:
    def get_booking(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return db.query(models.Booking).filter(models.Booking.id == booking_id).first()

    def get_bookings_by_user(
        self, db: Session, user_id: int, skip: int = 0, limit: int = 100
    ) -> List[models.Booking]:
        return (
            db.query(models.Booking)
            .filter(models.Booking.user_id == user_id)
            .order_by(models.Booking.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def quote_booking(
        self,
        db: Session,
        booking_in: schemas.BookingCreate,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> Tuple[models.Booking, PricingResult]:
        """Return a priced, unsaved booking for ``booking_in`` and its pricing."""
        now = now or datetime.utcnow()
        item = catalog.get_item(db, booking_in.catalog_item_id)
        if not item or not item.is_active:
            raise LookupError(f"Catalog item {booking_in.catalog_item_id} not found.")
        if item.kind != booking_in.kind:
            raise ValueError(
                f"Catalog item {item.id} is a {item.kind.value}, not a {booking_in.kind.value}."
            )

        repricing.validate_booking_dates(
            booking_in.kind,
            booking_in.start_date,
            booking_in.end_date,
            booking_in.delivery_date,
            now,
        )
        db_booking = models.Booking(
            kind=booking_in.kind,
            user_id=user_id,
            catalog_item_id=item.id,
            start_date=booking_in.start_date,
            end_date=booking_in.end_date,
            delivery_date=booking_in.delivery_date,
            quantity=booking_in.quantity,
            base_rate=snapshot_rate(item, booking_in.quantity),
            deposit=quantize_money(item.deposit or 0),
            selected_options=repricing.normalize_options(booking_in.selected_options),
            discount=quantize_money(0),
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        return db_booking, repricing.reprice_booking(db_booking)

    def build_booking(
        self,
        db: Session,
        booking_in: schemas.BookingCreate,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> models.Booking:
        db_booking, _ = self.quote_booking(db, booking_in, user_id, now)
        return db_booking

    def create_booking(
        self,
        db: Session,
        booking_in: schemas.BookingCreate,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> models.Booking:
        db_booking = self.build_booking(db, booking_in, user_id, now)
        db.add(db_booking)
        db.commit()
        db.refresh(db_booking)
        logger.info(
            "Created %s booking %s total=%s",
            db_booking.kind.value,
            db_booking.id,
            db_booking.total_amount,
        )
        return db_booking

    def update_booking(
        self,
        db: Session,
        db_booking: models.Booking,
        booking_in: schemas.BookingUpdate,
        now: Optional[datetime] = None,
    ) -> models.Booking:
        # Explicit nulls mean "unchanged"; no pricing input can be cleared
        update_data = {
            key: value
            for key, value in booking_in.model_dump(exclude_unset=True).items()
            if value is not None
        }
        repricing.apply_changes(db_booking, update_data, now or datetime.utcnow())
        return _commit(db, db_booking)

    def cancel_booking(
        self,
        db: Session,
        db_booking: models.Booking,
        reason: Optional[str],
        now: Optional[datetime] = None,
    ) -> models.Booking:
        cancellation.request_cancellation(db_booking, reason, now or datetime.utcnow())
        return _commit(db, db_booking)

    def update_booking_status(
        self, db: Session, db_booking: models.Booking, status: BookingStatus
    ) -> models.Booking:
        repricing.change_status(db_booking, status)
        return _commit(db, db_booking)

    def record_payment(
        self, db: Session, db_booking: models.Booking, payment_in: schemas.PaymentCreate
    ) -> models.Booking:
        """Mark a booking paid once the charged amount matches its total."""
        if db_booking.status in (BookingStatus.CANCELLED, BookingStatus.REJECTED):
            raise InvalidStateTransition(
                f"A {db_booking.status.value} booking cannot be paid",
                {"status": db_booking.status.value},
            )
        if db_booking.payment_status == PaymentStatus.PAID:
            raise InvalidStateTransition("Booking is already paid", {"payment_status": "paid"})
        # Gateways charge in cents; compare what would actually be charged
        charged = to_minor_units(parse_amount(payment_in.amount))
        expected = to_minor_units(db_booking.total_amount)
        if charged != expected:
            raise PaymentAmountMismatch(
                "Payment amount does not match the booking total",
                {"amount": f"expected {quantize_money(db_booking.total_amount)}"},
            )
        db_booking.payment_status = PaymentStatus.PAID
        db_booking.payment_method = payment_in.method.value
        logger.info("Booking %s paid %s cents via %s", db_booking.id, charged, payment_in.method.value)
        return _commit(db, db_booking)


booking = CRUDBooking()
