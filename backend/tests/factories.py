from datetime import datetime
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rental_booking.models import (
    Booking,
    BookingKind,
    BookingStatus,
    CatalogItem,
    PaymentStatus,
    RateUnit,
)
from rental_booking.models.base import BaseModel

NOW = datetime(2030, 1, 1, 12, 0)


def setup_db():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    return Session()


def make_catalog_item(
    db,
    kind=BookingKind.VEHICLE_RENTAL,
    price="50",
    deposit="200",
    unit=RateUnit.DAY,
):
    item = CatalogItem(
        kind=kind,
        name=f"Test {kind.value}",
        unit_price=Decimal(price),
        unit=unit,
        deposit=Decimal(deposit),
        is_active=True,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def make_booking(**overrides):
    """Return an unsaved two-day vehicle booking; override any column."""
    values = dict(
        kind=BookingKind.VEHICLE_RENTAL,
        user_id=1,
        catalog_item_id=1,
        start_date=datetime(2030, 2, 1, 9, 0),
        end_date=datetime(2030, 2, 3, 9, 0),
        delivery_date=None,
        base_rate=Decimal("50.00"),
        quantity=1,
        deposit=Decimal("0.00"),
        selected_options=[],
        discount=Decimal("0.00"),
        status=BookingStatus.CONFIRMED,
        payment_status=PaymentStatus.PENDING,
    )
    values.update(overrides)
    return Booking(**values)
