"""
Health Check Endpoints

Provides:
1. /health - Liveness plus the state of the canton rate table
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from calculator.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Application start time for uptime calculation
_start_time = datetime.now(timezone.utc)


@router.get("/health")
async def health_check():
    """
    Report service status.

    Returns 503 when the canton rate table cannot be loaded, since no
    calculation can succeed without it.
    """
    from config.settings import get_settings
    from config.tax_config_loader import get_default_rate_table

    settings = get_settings()
    uptime = (datetime.now(timezone.utc) - _start_time).total_seconds()

    body = {
        "status": "ok",
        "service": settings.name,
        "version": settings.version,
        "environment": settings.environment,
        "uptimeSeconds": round(uptime, 1),
        "aiConfigured": settings.ai.is_configured,
    }

    try:
        rate_table = get_default_rate_table()
    except ConfigurationError as e:
        logger.error(f"Health check: rate table unavailable: {e}")
        body.update({"status": "degraded", "taxYear": settings.default_tax_year, "cantons": 0})
        return JSONResponse(status_code=503, content=body)

    body.update({"taxYear": rate_table.tax_year, "cantons": len(rate_table)})
    return body
