"""
FastAPI Routers - Modular endpoint organization.

Router modules:
- calculator: Canton tax analysis, comparison and rate table
- plans: Subscription plans and feature access checks
- health: Service health check
"""

from .calculator import router as calculator_router
from .plans import router as plans_router
from .health import router as health_router

__all__ = [
    "calculator_router",
    "plans_router",
    "health_router",
]
