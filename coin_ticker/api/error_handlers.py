"""Centralized error handling for the widget API."""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class WidgetError:
    """Standard error codes for the widget API."""

    UNKNOWN_ASSET = "UNKNOWN_ASSET"
    TRIGGER_BUSY = "TRIGGER_BUSY"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SESSION_UNAVAILABLE = "SESSION_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse:
    """Standardized error response format."""

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | list[str] | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        """
        Initialize error response.

        Args:
            error_code: Standard error code from WidgetError
            message: Human-readable error message
            details: Additional error details (field-specific errors, etc.)
            status_code: HTTP status code
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        response = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_dict(),
        )


def create_validation_error_response(errors: list[dict[str, Any]]) -> ErrorResponse:
    """
    Create standardized validation error response from Pydantic validation errors.

    Args:
        errors: List of validation errors from Pydantic

    Returns:
        ErrorResponse with field-specific validation errors
    """
    field_errors = {}
    for error in errors:
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = error["msg"]

    return ErrorResponse(
        error_code=WidgetError.VALIDATION_ERROR,
        message="Validation failed for one or more fields",
        details=field_errors,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def create_unknown_asset_error(asset_id: str, available: list[str]) -> ErrorResponse:
    return ErrorResponse(
        error_code=WidgetError.UNKNOWN_ASSET,
        message=f"Unknown asset: {asset_id}",
        details={"asset": asset_id, "available": available},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def create_trigger_busy_error() -> ErrorResponse:
    return ErrorResponse(
        error_code=WidgetError.TRIGGER_BUSY,
        message="A manual price load is already in progress",
        status_code=status.HTTP_409_CONFLICT,
    )


def create_session_unavailable_error() -> ErrorResponse:
    return ErrorResponse(
        error_code=WidgetError.SESSION_UNAVAILABLE,
        message="Widget session is not running",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


def create_internal_error(message: str = "An unexpected error occurred") -> ErrorResponse:
    return ErrorResponse(
        error_code=WidgetError.INTERNAL_ERROR,
        message=message,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI request validation errors with the standardized format."""
    error_response = create_validation_error_response(exc.errors())
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.to_dict(),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert any uncaught error into the standardized 500 body."""
    error_response = create_internal_error()
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.to_dict(),
    )
