"""
Standardized Error Responses - Consistent API error handling.

Provides:
- Error codes for the calculator API
- HTTP status code mapping
- The `{success: false, error, errorCode}` response body
- Exception handlers for the FastAPI app
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from calculator.exceptions import (
    CalculationError,
    CantonNotFoundError,
    ConfigurationError,
    ProfileValidationError,
    TaxPilotError,
)
from services.logging_config import request_id_var

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Error codes for API responses."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CALCULATION_ERROR = "CALCULATION_ERROR"


ERROR_STATUS_MAP = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,

    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIGURATION_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CALCULATION_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

DEFAULT_MESSAGES = {
    ErrorCode.VALIDATION_ERROR: "The provided data is invalid. Please check your input.",
    ErrorCode.NOT_FOUND: "The requested resource was not found.",

    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again later.",
    ErrorCode.CONFIGURATION_ERROR: "Tax data is temporarily unavailable.",
    ErrorCode.CALCULATION_ERROR: "Failed to calculate tax values. Please try again later.",
}

# Domain exceptions in lookup order (subclasses before TaxPilotError)
EXCEPTION_CODES = (
    (ProfileValidationError, ErrorCode.VALIDATION_ERROR),
    (CantonNotFoundError, ErrorCode.NOT_FOUND),
    (ConfigurationError, ErrorCode.CONFIGURATION_ERROR),
    (CalculationError, ErrorCode.CALCULATION_ERROR),
)


class ErrorDetail(BaseModel):
    """Detailed error information."""
    field: Optional[str] = None
    message: str
    code: Optional[str] = None


class StandardErrorResponse(BaseModel):
    """Error body shared by every endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str = Field(..., description="User-friendly error message")
    error_code: str = Field(..., serialization_alias="errorCode", description="Machine-readable error code")
    details: Optional[List[ErrorDetail]] = None
    request_id: Optional[str] = Field(None, serialization_alias="requestId")


def create_error_response(
    error_code: ErrorCode,
    message: Optional[str] = None,
    details: Optional[List[Dict[str, Any]]] = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Example:
        >>> create_error_response(ErrorCode.NOT_FOUND, message="Canton XX not found")
    """
    status_code = ERROR_STATUS_MAP.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = StandardErrorResponse(
        error=message or DEFAULT_MESSAGES.get(error_code, "An error occurred."),
        error_code=error_code.value,
        details=[ErrorDetail(**d) for d in details] if details else None,
        request_id=request_id_var.get(),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def error_code_for(exc: TaxPilotError) -> ErrorCode:
    for exc_type, code in EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            return code
    return ErrorCode.INTERNAL_ERROR


def domain_error_response(exc: TaxPilotError) -> JSONResponse:
    """
    Render a domain exception.

    Client errors carry their own message; server-side failures are logged
    and answered with the generic message for their code.
    """
    code = error_code_for(exc)
    if ERROR_STATUS_MAP[code] >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{type(exc).__name__}: {exc}")
        return create_error_response(code)

    details = None
    field = getattr(exc, "field", None)
    if field:
        details = [{"field": field, "message": exc.message, "code": code.value}]
    return create_error_response(code, message=exc.message, details=details)


def handle_validation_error(errors: List[Dict[str, Any]]) -> JSONResponse:
    """Render request schema errors (from FastAPI/pydantic) as a 400."""
    details = []
    for error in errors:
        details.append({
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": str(error.get("msg", "Invalid value")),
            "code": str(error.get("type", "validation_error")),
        })

    return create_error_response(
        ErrorCode.VALIDATION_ERROR,
        message="Please check your input and try again.",
        details=details,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that turn exceptions into standard error bodies."""

    @app.exception_handler(TaxPilotError)
    async def _domain_error_handler(request: Request, exc: TaxPilotError) -> JSONResponse:
        return domain_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return handle_validation_error(list(exc.errors()))
