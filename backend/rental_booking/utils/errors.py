from typing import Dict
from fastapi import HTTPException, status
import logging

from ..services.pricing.errors import (
    ConcurrentModification,
    InvalidPricingInput,
    InvalidStateTransition,
    InvalidTemporalInput,
    NotCancellable,
    PaymentAmountMismatch,
    PricingError,
    UnknownOptionKind,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (UnknownOptionKind, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidTemporalInput, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidPricingInput, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotCancellable, status.HTTP_400_BAD_REQUEST),
    (PaymentAmountMismatch, status.HTTP_400_BAD_REQUEST),
    (InvalidStateTransition, status.HTTP_409_CONFLICT),
    (ConcurrentModification, status.HTTP_409_CONFLICT),
)


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    return HTTPException(status_code=code, detail=detail)


def pricing_error_response(exc: PricingError) -> HTTPException:
    """Translate an engine rejection into the matching HTTP error."""
    code = status.HTTP_400_BAD_REQUEST
    for error_cls, error_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            code = error_code
            break
    return error_response(exc.message, exc.field_errors, code)
