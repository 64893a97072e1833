"""
Plan Routes - Subscription plans and feature access

Routes:
- GET /api/plans - Plan comparison (limits and pricing)
- POST /api/plans/access - Feature checks for a plan and its current usage
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from subscription.feature_gate import FeatureGate, normalize_usage
from subscription.plans import get_plan_comparison

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plans", tags=["Plans"])


class AccessCheckRequest(BaseModel):
    """Plan id and usage counters of the current billing period."""
    model_config = ConfigDict(populate_by_name=True)

    plan_id: Optional[str] = Field(default="free", alias="planId")
    usage: Dict[str, int] = Field(default_factory=dict)

    @field_validator("usage")
    @classmethod
    def _known_counters(cls, usage: Dict[str, int]) -> Dict[str, int]:
        # savedProfiles and saved_profiles name the same counter; unknown names are rejected
        return {counter.value: value for counter, value in normalize_usage(usage).items()}


@router.get("")
async def list_plans():
    """Plan comparison table for the pricing page."""
    return {"success": True, "data": {"plans": get_plan_comparison()}}


@router.post("/access")
async def check_access(body: AccessCheckRequest):
    """
    Evaluate every gated feature for the given plan and usage.

    Usage is supplied by the caller; nothing is recorded here.
    """
    gate = FeatureGate(body.plan_id, body.usage)

    checks = {
        "calculateTaxes": gate.can_calculate_taxes(),
        "saveCompanyProfile": gate.can_save_company_profile(),
        "compareCantons": gate.can_compare_cantons(),
        "aiRecommendations": gate.can_access_ai_recommendations(),
        "complianceMonitoring": gate.can_access_compliance_monitoring(),
        "expertConsultation": gate.can_use_expert_consultation(),
    }

    return {
        "success": True,
        "data": {
            "overview": gate.get_limits_overview(),
            "checks": {name: result.to_dict() for name, result in checks.items()},
            "upgradeSuggestions": gate.get_upgrade_suggestions(),
        },
    }
