from pydantic import AfterValidator, BaseModel, Field, computed_field
from typing import Optional, List, Dict, Union, Annotated
from datetime import datetime, timezone
from decimal import Decimal
from ..models.booking_kind import BookingKind
from ..models.booking_status import BookingStatus, PaymentMethod, PaymentStatus
from ..services.pricing.money import to_minor_units

# Either ["insurance", "gps"] or the flag map older clients send
OptionSelection = Union[List[str], Dict[str, bool]]


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Bookings are stored and compared as naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


UtcDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]

# Same precision as the Numeric(10, 2) money columns
Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class BookingCreate(BaseModel):
    kind: BookingKind
    catalog_item_id: int
    start_date: Optional[UtcDateTime] = None
    end_date: Optional[UtcDateTime] = None
    # Product orders are delivered on a single date instead of a date range
    delivery_date: Optional[UtcDateTime] = None
    quantity: Annotated[int, Field(ge=1)] = 1
    selected_options: OptionSelection = Field(default_factory=list)


# Only pricing inputs can change; everything derived is recomputed
class BookingUpdate(BaseModel):
    start_date: Optional[UtcDateTime] = None
    end_date: Optional[UtcDateTime] = None
    delivery_date: Optional[UtcDateTime] = None
    selected_options: Optional[OptionSelection] = None
    # Admin only
    base_rate: Optional[Money] = None
    discount: Optional[Money] = None

    model_config = {"extra": "forbid"}


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class CancellationRequest(BaseModel):
    reason: Optional[Annotated[str, Field(max_length=200)]] = None


class CancellationPreview(BaseModel):
    eligible: bool
    refund_tier_percent: int
    refund_amount: Decimal


class PaymentCreate(BaseModel):
    method: PaymentMethod
    amount: Money


class PriceLineResponse(BaseModel):
    key: str
    label: str
    amount: Decimal

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: int
    kind: BookingKind
    user_id: int
    catalog_item_id: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    quantity: int
    selected_options: List[str]
    base_rate: Decimal
    deposit: Decimal
    duration_units: int
    subtotal: Decimal
    options_price: Decimal
    discount: Decimal
    total_amount: Decimal
    surcharge_version: Optional[str] = None
    status: BookingStatus
    cancellation_requested_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    version_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }

    @computed_field
    @property
    def total_amount_minor(self) -> int:
        """Total in cents, the amount handed to the payment gateway."""
        return to_minor_units(self.total_amount)


class PricingQuoteRequest(BaseModel):
    kind: BookingKind
    catalog_item_id: int
    start_date: Optional[UtcDateTime] = None
    end_date: Optional[UtcDateTime] = None
    delivery_date: Optional[UtcDateTime] = None
    quantity: Annotated[int, Field(ge=1)] = 1
    selected_options: OptionSelection = Field(default_factory=list)


class PricingQuoteResponse(BaseModel):
    duration_units: int
    subtotal: Decimal
    options_price: Decimal
    discount: Decimal
    total_amount: Decimal
    lines: List[PriceLineResponse]
    currency: str
    surcharge_version: str

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def total_amount_minor(self) -> int:
        return to_minor_units(self.total_amount)
