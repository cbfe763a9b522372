"""Application error taxonomy and the exception handlers that render it.

Services raise the typed errors below; ``add_exception_handlers`` converts
them (and framework/database errors) into the uniform response envelope::

    {"status": "error", "message": "...", "code": "..."}
"""

import re
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ValidationFailedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_FAILED"

    def __init__(self, message: str, *, errors: Optional[list[str]] = None, **kw):
        super().__init__(message, **kw)
        self.errors = errors or []


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"

    def __init__(self, message: str, *, field: Optional[str] = None, **kw):
        super().__init__(message, **kw)
        self.field = field


class BusinessRuleViolation(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BUSINESS_RULE_VIOLATION"


class EmptyCartError(BusinessRuleViolation):
    code = "EMPTY_CART"

    def __init__(self, message: str = "Cart is empty", **kw):
        super().__init__(message, **kw)


class InsufficientStockError(BusinessRuleViolation):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, **kw):
        super().__init__(
            f"{product_name} is not available in requested quantity", **kw
        )
        self.product_name = product_name


class OrderNotCancellableError(BusinessRuleViolation):
    code = "ORDER_NOT_CANCELLABLE"

    def __init__(self, message: str = "Order cannot be cancelled at this stage", **kw):
        super().__init__(message, **kw)


class IllegalStatusTransitionError(BusinessRuleViolation):
    code = "ILLEGAL_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str, **kw):
        super().__init__(f"Cannot move from '{current}' to '{requested}'", **kw)
        self.current = current
        self.requested = requested


class DuplicateReviewError(ConflictError):
    code = "DUPLICATE_REVIEW"

    def __init__(self, message: str = "You have already reviewed this product", **kw):
        super().__init__(message, field="product", **kw)


# ============================================================================
# RESPONSE RENDERING
# ============================================================================

_PG_UNIQUE_RE = re.compile(r"Key \((?P<field>[^)]+)\)=")
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")


def duplicate_field(exc: IntegrityError) -> Optional[str]:
    """Name the column behind a unique violation, for either dialect."""
    text = str(exc.orig)
    match = _PG_UNIQUE_RE.search(text)
    if match:
        return match.group("field").split(",")[-1].strip()
    match = _SQLITE_UNIQUE_RE.search(text)
    if match:
        last = match.group("columns").split(",")[-1].strip()
        return last.split(".")[-1]
    return None


def error_body(
    message: str,
    code: str,
    exc: Optional[BaseException] = None,
    **extra: Any,
) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "error", "message": message, "code": code}
    body.update({k: v for k, v in extra.items() if v is not None})
    if exc is not None and get_settings().ENVIRONMENT == "development":
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    extra: dict[str, Any] = {}
    if isinstance(exc, ConflictError):
        extra["field"] = exc.field
    if isinstance(exc, ValidationFailedError) and exc.errors:
        extra["errors"] = exc.errors
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.code, exc, **extra),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            ", ".join(messages), ValidationFailedError.code, errors=messages
        ),
    )


async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    field = duplicate_field(exc)
    if field:
        message = f"{field.replace('_', ' ').capitalize()} already exists"
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body(message, ConflictError.code, exc, field=field),
        )
    logger.warning("Integrity error: %s", exc.orig)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid data", ValidationFailedError.code, exc),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", AppError.code, exc),
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the envelope-rendering handlers on an app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
