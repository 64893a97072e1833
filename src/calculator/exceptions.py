"""
Exception hierarchy for the canton tax engine.

The engine signals failures by raising these typed errors; the web layer
maps them to HTTP responses (see web.helpers.error_responses).
"""

from typing import Optional


class TaxPilotError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProfileValidationError(TaxPilotError):
    """Raised when a company profile field is missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CantonNotFoundError(TaxPilotError):
    """Raised when a canton code is not present in the rate table."""

    def __init__(self, code: str):
        super().__init__(f"Canton {code} not found")
        self.code = code


class ConfigurationError(TaxPilotError):
    """Raised when tax parameters cannot be loaded or are inconsistent."""
    pass


class CalculationError(TaxPilotError):
    """Raised when a tax computation fails unexpectedly."""
    pass
