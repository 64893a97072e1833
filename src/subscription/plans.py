"""
Subscription Plans

Plan limits and pricing for TaxPilot AI.
Plans are ordered from least to most capable: free < starter < professional.
"""

from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass

# Sentinel for counters without a cap
UNLIMITED = -1


class PlanId(str, Enum):
    """Subscription plans, declared in ascending order of capability"""
    FREE = "free"
    STARTER = "starter"
    PROFESSIONAL = "professional"

    @property
    def rank(self) -> int:
        return list(PlanId).index(self)

    def __lt__(self, other):
        if not isinstance(other, PlanId):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, PlanId):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, PlanId):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, PlanId):
            return NotImplemented
        return self.rank >= other.rank

    def next_plan(self) -> Optional["PlanId"]:
        """The next plan up, or None for the top plan."""
        plans = list(PlanId)
        if self.rank + 1 < len(plans):
            return plans[self.rank + 1]
        return None


def resolve_plan_id(plan_id: Optional[str]) -> PlanId:
    """Map any plan identifier to a PlanId; unknown values resolve to FREE."""
    if isinstance(plan_id, PlanId):
        return plan_id
    if isinstance(plan_id, str):
        try:
            return PlanId(plan_id.strip().lower())
        except ValueError:
            pass
    return PlanId.FREE


@dataclass(frozen=True)
class PlanLimits:
    """Limits and features for each plan"""
    # Monthly counters (UNLIMITED = no cap)
    calculations: int
    saved_profiles: int
    canton_comparisons: int

    # Boolean features
    ai_recommendations: bool
    compliance_monitoring: bool
    priority_support: bool

    # Monthly expert consultation credits (None = not part of the plan)
    expert_consultations: Optional[int] = None


@dataclass(frozen=True)
class PlanOffer:
    """Pricing catalog entry"""
    name: str
    monthly_price_chf: int
    trial_days: int
    tagline: str


PLAN_LIMITS: Dict[PlanId, PlanLimits] = {
    PlanId.FREE: PlanLimits(
        calculations=3,
        saved_profiles=1,
        canton_comparisons=1,
        ai_recommendations=False,
        compliance_monitoring=False,
        priority_support=False,
    ),

    PlanId.STARTER: PlanLimits(
        calculations=UNLIMITED,
        saved_profiles=5,
        canton_comparisons=UNLIMITED,
        ai_recommendations=True,
        compliance_monitoring=True,
        priority_support=False,
    ),

    PlanId.PROFESSIONAL: PlanLimits(
        calculations=UNLIMITED,
        saved_profiles=UNLIMITED,
        canton_comparisons=UNLIMITED,
        ai_recommendations=True,
        compliance_monitoring=True,
        priority_support=True,
        expert_consultations=2,
    ),
}

PLAN_OFFERS: Dict[PlanId, PlanOffer] = {
    PlanId.FREE: PlanOffer(
        name="Free",
        monthly_price_chf=0,
        trial_days=0,
        tagline="Try the canton calculator",
    ),
    PlanId.STARTER: PlanOffer(
        name="Starter",
        monthly_price_chf=197,
        trial_days=14,
        tagline="Unlimited calculations and AI recommendations",
    ),
    PlanId.PROFESSIONAL: PlanOffer(
        name="Professional",
        monthly_price_chf=497,
        trial_days=14,
        tagline="Expert consultations and priority support",
    ),
}


def get_plan_limits(plan_id: Optional[str]) -> PlanLimits:
    """Limits for a plan id; unknown ids get the free plan."""
    return PLAN_LIMITS[resolve_plan_id(plan_id)]


def _display_limit(value: Optional[int]) -> Any:
    if value is None:
        return None
    return "unlimited" if value == UNLIMITED else value


def get_plan_comparison() -> Dict[str, Any]:
    """Generate plan comparison table for the pricing page"""
    comparison = {}
    for plan in PlanId:
        limits = PLAN_LIMITS[plan]
        offer = PLAN_OFFERS[plan]
        comparison[plan.value] = {
            "name": offer.name,
            "monthlyPriceChf": offer.monthly_price_chf,
            "trialDays": offer.trial_days,
            "tagline": offer.tagline,
            "calculations": _display_limit(limits.calculations),
            "savedProfiles": _display_limit(limits.saved_profiles),
            "cantonComparisons": _display_limit(limits.canton_comparisons),
            "expertConsultations": _display_limit(limits.expert_consultations),
            "aiRecommendations": limits.ai_recommendations,
            "complianceMonitoring": limits.compliance_monitoring,
            "prioritySupport": limits.priority_support,
        }
    return comparison


__all__ = [
    'UNLIMITED',
    'PlanId',
    'PlanLimits',
    'PlanOffer',
    'PLAN_LIMITS',
    'PLAN_OFFERS',
    'resolve_plan_id',
    'get_plan_limits',
    'get_plan_comparison',
]
