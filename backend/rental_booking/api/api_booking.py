# backend/rental_booking/api/api_booking.py

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..database import get_db
from ..schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    BookingUpdate,
    CancellationPreview,
    CancellationRequest,
    PaymentCreate,
    PricingQuoteRequest,
    PricingQuoteResponse,
)
from ..services.pricing import PricingError, refund_preview
from ..utils import error_response, pricing_error_response
from .dependencies import Actor, get_current_actor, get_current_admin

router = APIRouter(tags=["bookings"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)
# ‣ Note: no prefix here.  main.py mounts this under /api/v1/bookings


def _get_owned_booking(db: Session, booking_id: int, actor: Actor) -> models.Booking:
    db_booking = crud.booking.get_booking(db, booking_id=booking_id)
    if not db_booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found.")
    if not actor.is_admin and db_booking.user_id != actor.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this booking.",
        )
    return db_booking


@router.post("/quote", response_model=PricingQuoteResponse)
def quote_booking(
    *,
    db: Session = Depends(get_db),
    quote_in: PricingQuoteRequest,
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    """Price a prospective booking without saving it."""
    try:
        draft, result = crud.booking.quote_booking(
            db, BookingCreate(**quote_in.model_dump()), user_id=current_actor.id
        )
    except PricingError as exc:
        raise pricing_error_response(exc)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValueError as exc:
        raise error_response(str(exc), {"kind": "does not match catalog item"}, status.HTTP_400_BAD_REQUEST)
    return PricingQuoteResponse(
        duration_units=result.duration_units,
        subtotal=result.subtotal,
        options_price=result.options_price,
        discount=result.discount,
        total_amount=result.total_amount,
        lines=[asdict(line) for line in result.lines],
        currency=settings.DEFAULT_CURRENCY,
        surcharge_version=draft.surcharge_version,
    )


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    *,
    db: Session = Depends(get_db),
    booking_in: BookingCreate,
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    """
    Create a booking priced at the catalog item's current rate.
    """
    try:
        return crud.booking.create_booking(db, booking_in, user_id=current_actor.id)
    except PricingError as exc:
        raise pricing_error_response(exc)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValueError as exc:
        raise error_response(str(exc), {"kind": "does not match catalog item"}, status.HTTP_400_BAD_REQUEST)


@router.get("/me", response_model=List[BookingResponse])
def read_my_bookings(
    *,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
    skip: int = 0,
    limit: int = 100,
) -> Any:
    return crud.booking.get_bookings_by_user(db, current_actor.id, skip=skip, limit=limit)


@router.get("/{booking_id}", response_model=BookingResponse)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    return _get_owned_booking(db, booking_id, current_actor)


@router.patch("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: int,
    booking_in: BookingUpdate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    """Change dates or options; pricing is recomputed before saving."""
    db_booking = _get_owned_booking(db, booking_id, current_actor)
    # Null means "unchanged", so only non-null admin fields count
    admin_only = {"base_rate", "discount"} & booking_in.model_dump(exclude_none=True).keys()
    if admin_only and not current_actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can change the rate or discount.",
        )
    try:
        return crud.booking.update_booking(db, db_booking, booking_in)
    except PricingError as exc:
        raise pricing_error_response(exc)


@router.get("/{booking_id}/cancellation-preview", response_model=CancellationPreview)
def preview_cancellation(
    booking_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    db_booking = _get_owned_booking(db, booking_id, current_actor)
    try:
        return refund_preview(db_booking, datetime.utcnow())
    except PricingError as exc:
        raise pricing_error_response(exc)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    cancel_in: CancellationRequest,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    db_booking = _get_owned_booking(db, booking_id, current_actor)
    try:
        return crud.booking.cancel_booking(db, db_booking, cancel_in.reason)
    except PricingError as exc:
        raise pricing_error_response(exc)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    status_update: BookingStatusUpdate,
    db: Session = Depends(get_db),
    current_admin: Actor = Depends(get_current_admin),
) -> Any:
    """Confirm, reject, start or complete a booking (administrators only)."""
    db_booking = _get_owned_booking(db, booking_id, current_admin)
    try:
        return crud.booking.update_booking_status(db, db_booking, status_update.status)
    except PricingError as exc:
        raise pricing_error_response(exc)


@router.post("/{booking_id}/payment", response_model=BookingResponse)
def record_payment(
    booking_id: int,
    payment_in: PaymentCreate,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    db_booking = _get_owned_booking(db, booking_id, current_actor)
    try:
        return crud.booking.record_payment(db, db_booking, payment_in)
    except PricingError as exc:
        raise pricing_error_response(exc)
