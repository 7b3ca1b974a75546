from .booking import (
    BookingCreate,
    BookingUpdate,
    BookingStatusUpdate,
    BookingResponse,
    CancellationRequest,
    CancellationPreview,
    PaymentCreate,
    PriceLineResponse,
    PricingQuoteRequest,
    PricingQuoteResponse,
)
from .catalog import CatalogItemCreate, CatalogItemUpdate, CatalogItemResponse
