from pydantic import BaseModel, Field
from typing import Annotated
from datetime import datetime
from decimal import Decimal
from ..models.booking_kind import BookingKind
from ..models.catalog import RateUnit


class CatalogItemCreate(BaseModel):
    kind: BookingKind
    name: Annotated[str, Field(min_length=1, max_length=100)]
    unit_price: Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]
    unit: RateUnit = RateUnit.DAY
    deposit: Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)] = Decimal("0")


class CatalogItemUpdate(BaseModel):
    unit_price: Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class CatalogItemResponse(CatalogItemCreate):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }
