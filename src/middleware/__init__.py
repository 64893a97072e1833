"""Middleware components for the TaxPilot AI service.

Provides:
- Request correlation ID tracking
"""

from .correlation import (
    CorrelationIdMiddleware,
    REQUEST_ID_HEADER,
    get_request_id,
)

__all__ = [
    "CorrelationIdMiddleware",
    "REQUEST_ID_HEADER",
    "get_request_id",
]
