from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal

from .. import models, schemas
from ..services.pricing.money import quantize_money


class CRUDCatalog:
    def get_item(self, db: Session, item_id: int) -> Optional[models.CatalogItem]:
        return db.query(models.CatalogItem).filter(models.CatalogItem.id == item_id).first()

    def create_item(self, db: Session, item_in: schemas.CatalogItemCreate) -> models.CatalogItem:
        db_item = models.CatalogItem(**item_in.model_dump(), is_active=True)
        db.add(db_item)
        db.commit()
        db.refresh(db_item)
        return db_item

    def update_price(self, db: Session, db_item: models.CatalogItem, unit_price: Decimal) -> models.CatalogItem:
        # Existing bookings keep the rate they were created with
        db_item.unit_price = quantize_money(unit_price)
        db.commit()
        db.refresh(db_item)
        return db_item


catalog = CRUDCatalog()


def snapshot_rate(item: models.CatalogItem, quantity: int = 1) -> Decimal:
    """Rate a new booking is priced at, read once at creation time.

    Vehicles and services are priced per day; a product order's rate covers
    the whole quantity ordered.
    """
    if item.kind == models.BookingKind.PRODUCT_ORDER:
        return quantize_money(Decimal(str(item.unit_price)) * quantity)
    return quantize_money(item.unit_price)
