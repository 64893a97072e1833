"""Subscription plans and plan-based feature gating."""

from .plans import (
    UNLIMITED,
    PlanId,
    PlanLimits,
    PlanOffer,
    PLAN_LIMITS,
    PLAN_OFFERS,
    resolve_plan_id,
    get_plan_limits,
    get_plan_comparison,
)
from .feature_gate import FeatureGate, FeatureGateResult, UsageCounter, normalize_usage
from .usage import (
    Subscription,
    SubscriptionStatus,
    UsageLog,
    calculate_usage_from_logs,
    is_subscription_active,
    get_user_plan_id,
)

__all__ = [
    "UNLIMITED",
    "PlanId",
    "PlanLimits",
    "PlanOffer",
    "PLAN_LIMITS",
    "PLAN_OFFERS",
    "resolve_plan_id",
    "get_plan_limits",
    "get_plan_comparison",
    "FeatureGate",
    "FeatureGateResult",
    "UsageCounter",
    "normalize_usage",
    "Subscription",
    "SubscriptionStatus",
    "UsageLog",
    "calculate_usage_from_logs",
    "is_subscription_active",
    "get_user_plan_id",
]
