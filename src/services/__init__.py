"""
Infrastructure services for TaxPilot AI.

- Logging configuration and request-scoped log context
"""

from .logging_config import (
    configure_logging,
    request_id_var,
    JsonFormatter,
    ReadableFormatter,
)

__all__ = [
    "configure_logging",
    "request_id_var",
    "JsonFormatter",
    "ReadableFormatter",
]
