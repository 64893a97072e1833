"""
FastAPI application for TaxPilot AI.

Routes:
- POST /api/calculator/analyze : tax health score and recommendations
- POST /api/calculator/compare : tax burden across all cantons
- GET  /api/calculator/cantons : canton rate table
- GET  /api/plans              : plan comparison
- POST /api/plans/access       : feature checks for a plan and usage
- GET  /health                 : health check
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings, get_settings
from middleware.correlation import CorrelationIdMiddleware
from services.logging_config import configure_logging
from web.helpers.error_responses import register_exception_handlers
from web.routers import calculator_router, health_router, plans_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
    """
    settings = settings or get_settings()

    configure_logging(level=settings.log_level, json_output=settings.log_json)
    for warning in settings.validate_production_settings():
        logger.warning(f"Configuration: {warning}")

    app = FastAPI(
        title=settings.name,
        version=settings.version,
        debug=settings.debug,
    )

    # Last added = first executed: correlation id wraps everything, including CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    app.include_router(calculator_router)
    app.include_router(plans_router)
    app.include_router(health_router)

    logger.info(
        f"{settings.name} {settings.version} started "
        f"(environment={settings.environment}, tax_year={settings.default_tax_year})"
    )
    return app


app = create_app()
