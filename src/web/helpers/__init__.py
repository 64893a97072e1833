"""
Web Helpers - Reusable utilities for API endpoints.

Contains:
- Standardized error responses
"""

from .error_responses import (
    ErrorCode,
    StandardErrorResponse,
    create_error_response,
    domain_error_response,
    handle_validation_error,
    register_exception_handlers,
)

__all__ = [
    "ErrorCode",
    "StandardErrorResponse",
    "create_error_response",
    "domain_error_response",
    "handle_validation_error",
    "register_exception_handlers",
]
