"""
Calculator Routes - Canton tax analysis and comparison

Routes:
- POST /api/calculator/analyze - Tax health score and AI recommendations
- POST /api/calculator/compare - Tax burden in every canton, cheapest first
- GET /api/calculator/cantons - Canton rate table
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Request

from calculator.canton_rates import CantonRateTable, SUPPORTED_LANGUAGES
from calculator.decimal_math import divide, to_float, ZERO
from calculator.exceptions import CalculationError, ProfileValidationError, TaxPilotError
from calculator.health_score import TaxHealthScorer
from calculator.models import CompanyProfile
from calculator.savings import savings_from_breakdowns
from calculator.tax_calculator import CantonTaxCalculator, sort_by_burden

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calculator", tags=["Calculator"])

# Dependencies will be injected
_rate_table: Optional[CantonRateTable] = None
_recommendation_generator = None


def set_dependencies(rate_table=None, recommendation_generator=None):
    """Set dependencies from the main app."""
    global _rate_table, _recommendation_generator
    _rate_table = rate_table
    _recommendation_generator = recommendation_generator


def _get_rate_table() -> CantonRateTable:
    global _rate_table
    if _rate_table is None:
        from config.tax_config_loader import get_default_rate_table
        _rate_table = get_default_rate_table()
    return _rate_table


def _get_recommendation_generator():
    global _recommendation_generator
    if _recommendation_generator is None:
        from recommendation.ai_recommendations import get_recommendation_generator
        _recommendation_generator = get_recommendation_generator()
    return _recommendation_generator


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _read_payload(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ProfileValidationError("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise ProfileValidationError("Request body must be a JSON object")
    return body


# =============================================================================
# ANALYSIS ROUTES
# =============================================================================

@router.post("/analyze")
async def analyze_company(request: Request):
    """
    Score a company's tax situation in its current canton.

    Requires revenue, canton and legalForm. Returns the health score and
    AI recommendations (rule-based when the AI provider is unavailable).
    """
    payload = await _read_payload(request)
    try:
        profile = CompanyProfile.from_dict(payload, require_canton=True)
        rate_table = _get_rate_table()

        health = TaxHealthScorer(rate_table).score(profile)
        breakdowns = CantonTaxCalculator(rate_table).compute_taxes(profile)
        savings = savings_from_breakdowns(breakdowns, profile.canton)

        recommendations = await _get_recommendation_generator().generate(
            profile,
            health,
            savings,
            best_canton_name=rate_table.canton_name(savings.best_canton),
        )

        logger.info(f"Analyzed {profile.legal_form.value} in {profile.canton}: score={health.score}")

        return {
            "success": True,
            "data": {
                "healthScore": health.to_dict(),
                "aiRecommendations": recommendations,
                "timestamp": _timestamp(),
            },
        }

    except TaxPilotError:
        raise
    except Exception as e:
        logger.exception("Tax analysis failed")
        raise CalculationError(f"Tax analysis failed: {e}") from e


@router.post("/compare")
async def compare_cantons(request: Request):
    """
    Compare the tax burden across all cantons.

    Requires revenue and legalForm; canton is optional and, when given,
    determines currentCantonTax and potentialSavings.
    """
    payload = await _read_payload(request)
    try:
        profile = CompanyProfile.from_dict(payload, require_canton=False)
        rate_table = _get_rate_table()

        breakdowns = CantonTaxCalculator(rate_table).compute_taxes(profile)
        ranked = sort_by_burden(breakdowns)
        best = ranked[0]

        current_tax: Optional[Decimal] = None
        potential_savings = ZERO
        if profile.canton is not None:
            savings = savings_from_breakdowns(breakdowns, profile.canton)
            current_tax = savings.current_tax
            potential_savings = savings.savings

        total = sum((b.total_tax_burden for b in breakdowns), ZERO)
        average_tax = divide(total, len(breakdowns))

        return {
            "success": True,
            "data": {
                "calculations": [b.to_dict() for b in ranked],
                "summary": {
                    "currentCantonTax": to_float(current_tax) if current_tax is not None else None,
                    "bestCantonTax": to_float(best.total_tax_burden),
                    "potentialSavings": to_float(potential_savings),
                    "bestCanton": best.canton,
                    "averageTax": to_float(average_tax),
                },
                "timestamp": _timestamp(),
            },
        }

    except TaxPilotError:
        raise
    except Exception as e:
        logger.exception("Canton comparison failed")
        raise CalculationError(f"Canton comparison failed: {e}") from e


# =============================================================================
# REFERENCE DATA
# =============================================================================

@router.get("/cantons")
async def list_cantons(language: str = Query("EN", description="EN, DE, FR or IT")):
    """Canton parameters with names in the requested language."""
    lang = language.upper()
    if lang not in SUPPORTED_LANGUAGES:
        lang = "EN"

    rate_table = _get_rate_table()
    return {
        "success": True,
        "data": {
            "taxYear": rate_table.tax_year,
            "language": lang,
            "cantons": [canton.to_dict(lang) for canton in rate_table],
        },
    }
