from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidArgumentError(AppError):
    def __init__(self, message: str = "Invalid argument", details: dict[str, Any] | None = None):
        super().__init__(
            message, code="INVALID_ARGUMENT", status_code=status.HTTP_400_BAD_REQUEST, details=details
        )


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)


class LimitBelowCreditError(AppError):
    """Requested limit is lower than the credit already consumed."""

    def __init__(self, customer_id: str, credit: int, limit: int, requested_limit: int):
        super().__init__(
            "Limit cannot be lower than the current credit",
            code="LIMIT_BELOW_CREDIT",
            status_code=status.HTTP_409_CONFLICT,
            details={
                "customer_id": customer_id,
                "credit": credit,
                "limit": limit,
                "requested_limit": requested_limit,
            },
        )


class ConflictError(AppError):
    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFLICT", status_code=status.HTTP_409_CONFLICT, details=details)


class StoreUnavailableError(AppError):
    def __init__(self, message: str = "Record store unavailable"):
        super().__init__(message, code="STORE_UNAVAILABLE", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class DeadlineExceededError(AppError):
    def __init__(self, message: str = "Request timed out"):
        super().__init__(message, code="TIMEOUT", status_code=status.HTTP_504_GATEWAY_TIMEOUT)


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body = {
        "error": {
            "message": exc.message,
            "code": exc.code,
            "details": exc.details,
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return error_response(request, InvalidArgumentError("Validation error", details={"errors": errors}))


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from app.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "error": {
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
