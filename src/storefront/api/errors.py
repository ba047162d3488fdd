"""Translate storefront errors into HTTP responses.

Every error body has the shape ``{"error": <message>, "details": <extra>}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from storefront.errors import (
    CouponInactive,
    CouponMinimumNotMet,
    Forbidden,
    GatewayError,
    InsufficientStock,
    InvalidTransition,
    NotFound,
    PaymentClosed,
    PaymentLimitExceeded,
    SignatureInvalid,
)

logger = structlog.get_logger(__name__)


def _first_message(messages) -> str:
    for values in (messages or {}).values():
        if isinstance(values, (list, tuple)) and values:
            return str(values[0])
        if values:
            return str(values)
    return "Invalid request"


def _error(status_code: int, error: str, details=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "details": details})


async def insufficient_stock_handler(request: Request, exc: InsufficientStock):
    return _error(
        409,
        "Insufficient stock",
        [shortage.to_dict() for shortage in exc.shortages],
    )


async def signature_invalid_handler(request: Request, exc: SignatureInvalid):
    return _error(400, "Payment verification failed")


async def conflict_handler(request: Request, exc: ValidationError):
    return _error(409, _first_message(exc.messages), exc.messages)


async def unprocessable_handler(request: Request, exc: ValidationError):
    return _error(422, _first_message(exc.messages), exc.messages)


async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(400, _first_message(exc.messages), exc.messages)


async def not_found_handler(request: Request, exc: NotFound):
    return _error(404, exc.message, {"resource": exc.resource, "id": exc.identifier})


async def object_not_found_handler(request: Request, exc: ObjectNotFoundError):
    return _error(404, "Not found", str(exc))


async def concurrent_update_handler(request: Request, exc: ExpectedVersionError):
    return _error(409, "The resource was modified concurrently, please retry")


async def forbidden_handler(request: Request, exc: Forbidden):
    return _error(403, exc.message)


async def gateway_error_handler(request: Request, exc: GatewayError):
    logger.error("Payment gateway error", path=request.url.path, error=exc.message)
    return _error(502, "Payment gateway error", exc.message)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the storefront error mapping on ``app``."""
    app.add_exception_handler(InsufficientStock, insufficient_stock_handler)
    app.add_exception_handler(SignatureInvalid, signature_invalid_handler)
    app.add_exception_handler(PaymentClosed, conflict_handler)
    app.add_exception_handler(InvalidTransition, conflict_handler)
    app.add_exception_handler(PaymentLimitExceeded, unprocessable_handler)
    app.add_exception_handler(CouponInactive, unprocessable_handler)
    app.add_exception_handler(CouponMinimumNotMet, unprocessable_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFound, not_found_handler)
    app.add_exception_handler(ObjectNotFoundError, object_not_found_handler)
    app.add_exception_handler(Forbidden, forbidden_handler)
    app.add_exception_handler(ExpectedVersionError, concurrent_update_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
