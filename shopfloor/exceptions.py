"""Error taxonomy and FastAPI exception handlers.

Every domain error carries an HTTP status and a stable error code so routers
can let them propagate and the handlers below turn them into a uniform
``{"error": {"code": ..., "message": ...}}`` body.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

# Starlette's name for 422 differs between releases
UNPROCESSABLE = 422


class ShopfloorError(Exception):
    """Base exception for application errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidSequence(ShopfloorError, ValueError):
    """A counter or sequence input is negative, zero or not an integer."""

    status_code = UNPROCESSABLE
    error_code = "INVALID_SEQUENCE"


class InvalidTolerance(ShopfloorError, ValueError):
    """A weight tolerance percentage is negative."""

    status_code = UNPROCESSABLE
    error_code = "INVALID_TOLERANCE"


class EncodeError(ShopfloorError, ValueError):
    """A barcode or QR payload cannot be encoded."""

    status_code = UNPROCESSABLE
    error_code = "ENCODE_ERROR"


class EmptyPayload(EncodeError):
    """Nothing to encode."""

    error_code = "EMPTY_PAYLOAD"


class UnsupportedCharacter(EncodeError):
    """The payload has characters the symbology cannot represent."""

    error_code = "UNSUPPORTED_CHARACTER"


class PayloadTooLong(EncodeError):
    """The payload exceeds the symbology capacity."""

    error_code = "PAYLOAD_TOO_LONG"


class MissingConfiguration(ShopfloorError):
    """No label configuration has been saved yet."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "MISSING_CONFIGURATION"


class PersistenceFailure(ShopfloorError):
    """A storage call failed; the operation was rolled back and is not retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "PERSISTENCE_FAILURE"


class NotFound(ShopfloorError):
    """A referenced record does not exist or is not visible to the caller."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class InvalidStateTransition(ShopfloorError):
    """A workflow record is not in a state that allows the requested change."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "INVALID_STATE"


class WeightOutOfRange(ShopfloorError):
    """Measured weight is outside tolerance and the operator did not confirm it."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "WEIGHT_OUT_OF_RANGE"

    def __init__(self, message: str, deviation_percent: float, is_over: bool):
        super().__init__(message)
        self.deviation_percent = deviation_percent
        self.is_over = is_over


class FieldLocked(ShopfloorError):
    """An interactive edit targeted a locked label field."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "FIELD_LOCKED"


class ScaleUnavailable(ShopfloorError):
    """The weighing scale could not be read."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "SCALE_UNAVAILABLE"


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: dict | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content = {"error": {"code": error_code, "message": message}}
    if details:
        content["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def shopfloor_exception_handler(request: Request, exc: ShopfloorError) -> JSONResponse:
    """Handle application errors."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")

    details = None
    if isinstance(exc, WeightOutOfRange):
        details = {"deviation_percent": exc.deviation_percent, "is_over": exc.is_over}

    return create_error_response(exc.status_code, exc.message, exc.error_code, details)


async def operational_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """Handle database operational errors (connection issues, etc.)."""
    logger.error(f"Database operational error on {request.url.path}: {exc}")
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        PersistenceFailure.error_code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the application exception handlers."""
    app.add_exception_handler(ShopfloorError, shopfloor_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
