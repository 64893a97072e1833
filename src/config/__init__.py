"""Configuration module for TaxPilot AI."""

from .settings import AISettings, Settings, get_settings

__all__ = [
    "AISettings",
    "Settings",
    "get_settings",
]
