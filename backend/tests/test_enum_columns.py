import pytest
from sqlalchemy import text

from factories import make_booking, make_catalog_item
from rental_booking.models import BookingKind, BookingStatus, PaymentStatus
from rental_booking.services.pricing import reprice_booking


@pytest.fixture
def stored_booking(db):
    item = make_catalog_item(db)
    booking = make_booking(catalog_item_id=item.id)
    reprice_booking(booking)
    db.add(booking)
    db.commit()
    return booking


def raw_status(db, booking_id):
    return db.execute(
        text("SELECT status FROM bookings WHERE id = :id"), {"id": booking_id}
    ).scalar_one()


@pytest.mark.parametrize(
    "stored,expected",
    [
        ("CONFIRMED", BookingStatus.CONFIRMED),
        ("Pending", BookingStatus.PENDING),
        ("IN_PROGRESS", BookingStatus.IN_PROGRESS),
        ("in-progress", BookingStatus.IN_PROGRESS),
    ],
)
def test_legacy_spellings_read_back_as_members(db, stored_booking, stored, expected):
    db.execute(
        text("UPDATE bookings SET status = :status WHERE id = :id"),
        {"status": stored, "id": stored_booking.id},
    )
    db.commit()
    db.expire_all()
    assert stored_booking.status is expected


def test_writes_store_the_canonical_value(db, stored_booking):
    assert raw_status(db, stored_booking.id) == "confirmed"

    stored_booking.status = "IN_PROGRESS"
    db.commit()
    assert raw_status(db, stored_booking.id) == "in-progress"
    db.expire_all()
    assert stored_booking.status is BookingStatus.IN_PROGRESS


def test_other_enum_columns_share_the_behaviour(db, stored_booking):
    db.execute(
        text("UPDATE bookings SET kind = 'VEHICLE_RENTAL', payment_status = 'Paid' WHERE id = :id"),
        {"id": stored_booking.id},
    )
    db.commit()
    db.expire_all()
    assert stored_booking.kind is BookingKind.VEHICLE_RENTAL
    assert stored_booking.payment_status is PaymentStatus.PAID
