"""
Feature Gate

Decides whether a plan may perform a gated action given the usage counters
of the current billing period. Usage is supplied per request by the caller
(sourced from billing/persistence); the gate holds no global state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from subscription.plans import PlanId, PlanLimits, UNLIMITED, resolve_plan_id, PLAN_LIMITS

logger = logging.getLogger(__name__)


class UsageCounter(str, Enum):
    """Usage counter keys, also used as usage log actions"""
    CALCULATIONS = "calculations"
    SAVED_PROFILES = "saved_profiles"
    CANTON_COMPARISONS = "canton_comparisons"
    EXPERT_CONSULTATIONS = "expert_consultations"

    @property
    def wire_name(self) -> str:
        """camelCase key used in API payloads (savedProfiles)"""
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest)

    @classmethod
    def parse(cls, key: Any) -> "UsageCounter":
        """
        Resolve a counter from its enum member, snake_case or camelCase name.

        Raises:
            ValueError: If the key names no counter
        """
        if isinstance(key, cls):
            return key
        for counter in cls:
            if key in (counter.value, counter.wire_name):
                return counter
        raise ValueError(f"Unknown usage counter: {key!r}")


def normalize_usage(usage: Optional[Mapping[Any, int]]) -> Dict[UsageCounter, int]:
    """Map usage keys onto UsageCounter; unknown keys raise ValueError."""
    return {UsageCounter.parse(key): value for key, value in (usage or {}).items()}


@dataclass(frozen=True)
class FeatureGateResult:
    """Outcome of a single feature check"""
    allowed: bool
    reason: Optional[str] = None
    upgrade_required: Optional[bool] = None
    current_usage: Optional[int] = None
    limit: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """camelCase representation without unset fields"""
        data: Dict[str, Any] = {"allowed": self.allowed}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.upgrade_required is not None:
            data["upgradeRequired"] = self.upgrade_required
        if self.current_usage is not None:
            data["currentUsage"] = self.current_usage
        if self.limit is not None:
            data["limit"] = self.limit
        return data


class FeatureGate:
    """
    Plan-based access control for calculator features.

    Usage:
        gate = FeatureGate("free", {"calculations": 3})
        result = gate.can_calculate_taxes()
        if not result.allowed:
            ...  # show result.reason and an upgrade prompt
    """

    def __init__(self, plan_id: Optional[str] = "free", usage: Optional[Mapping[str, int]] = None):
        self.plan_id: PlanId = resolve_plan_id(plan_id)
        if isinstance(plan_id, str) and self.plan_id.value != plan_id.strip().lower():
            logger.info(f"Unknown plan id {plan_id!r}, using free plan limits")
        self.limits: PlanLimits = PLAN_LIMITS[self.plan_id]
        self._usage: Dict[UsageCounter, int] = normalize_usage(usage)

    def usage_of(self, counter: UsageCounter) -> int:
        """Current usage for a counter (0 when not reported)"""
        return self._usage.get(counter, 0) or 0

    def _check_counter(self, counter: UsageCounter, limit: int, limit_reached: str) -> FeatureGateResult:
        if limit == UNLIMITED:
            return FeatureGateResult(allowed=True)

        usage = self.usage_of(counter)
        if usage >= limit:
            return FeatureGateResult(
                allowed=False,
                reason=limit_reached,
                upgrade_required=True,
                current_usage=usage,
                limit=limit,
            )

        return FeatureGateResult(allowed=True, current_usage=usage, limit=limit)

    # =========================================================================
    # USAGE-LIMITED FEATURES
    # =========================================================================

    def can_calculate_taxes(self) -> FeatureGateResult:
        limit = self.limits.calculations
        return self._check_counter(
            UsageCounter.CALCULATIONS,
            limit,
            f"You've reached your limit of {limit} calculations per month",
        )

    def can_save_company_profile(self) -> FeatureGateResult:
        limit = self.limits.saved_profiles
        return self._check_counter(
            UsageCounter.SAVED_PROFILES,
            limit,
            f"You've reached your limit of {limit} saved company profiles",
        )

    def can_compare_cantons(self) -> FeatureGateResult:
        limit = self.limits.canton_comparisons
        plural = "" if limit == 1 else "s"
        return self._check_counter(
            UsageCounter.CANTON_COMPARISONS,
            limit,
            f"You've reached your limit of {limit} canton comparison{plural} per month",
        )

    def can_use_expert_consultation(self) -> FeatureGateResult:
        """
        Expert consultations are a Professional plan allotment.

        Exhausting the monthly credits does not call for an upgrade, only for
        the next billing period.
        """
        limit = self.limits.expert_consultations
        if limit is None:
            return FeatureGateResult(
                allowed=False,
                reason="Expert consultations are only available with Professional plan",
                upgrade_required=True,
            )

        usage = self.usage_of(UsageCounter.EXPERT_CONSULTATIONS)
        if usage >= limit:
            return FeatureGateResult(
                allowed=False,
                reason=f"You've used all {limit} expert consultation credits this month",
                upgrade_required=False,
                current_usage=usage,
                limit=limit,
            )

        return FeatureGateResult(allowed=True, current_usage=usage, limit=limit)

    # =========================================================================
    # PLAN FEATURES
    # =========================================================================

    def can_access_ai_recommendations(self) -> FeatureGateResult:
        if not self.limits.ai_recommendations:
            return FeatureGateResult(
                allowed=False,
                reason="AI recommendations are only available with paid plans",
                upgrade_required=True,
            )
        return FeatureGateResult(allowed=True)

    def can_access_compliance_monitoring(self) -> FeatureGateResult:
        if not self.limits.compliance_monitoring:
            return FeatureGateResult(
                allowed=False,
                reason="Compliance monitoring is only available with paid plans",
                upgrade_required=True,
            )
        return FeatureGateResult(allowed=True)

    def has_priority_support(self) -> bool:
        return self.limits.priority_support

    # =========================================================================
    # OVERVIEW
    # =========================================================================

    def _counter_overview(self, counter: UsageCounter, limit: int) -> Dict[str, Any]:
        return {
            "limit": limit,
            "usage": self.usage_of(counter),
            "unlimited": limit == UNLIMITED,
        }

    def get_limits_overview(self) -> Dict[str, Any]:
        """All limits and current usage, e.g. for a usage meter"""
        expert_limit = self.limits.expert_consultations
        return {
            "planId": self.plan_id.value,
            "limits": {
                "calculations": self._counter_overview(UsageCounter.CALCULATIONS, self.limits.calculations),
                "savedProfiles": self._counter_overview(UsageCounter.SAVED_PROFILES, self.limits.saved_profiles),
                "cantonComparisons": self._counter_overview(
                    UsageCounter.CANTON_COMPARISONS, self.limits.canton_comparisons
                ),
                "expertConsultations": (
                    self._counter_overview(UsageCounter.EXPERT_CONSULTATIONS, expert_limit)
                    if expert_limit is not None else None
                ),
            },
            "features": {
                "aiRecommendations": self.limits.ai_recommendations,
                "complianceMonitoring": self.limits.compliance_monitoring,
                "prioritySupport": self.limits.priority_support,
            },
        }

    def get_upgrade_suggestions(self) -> List[str]:
        """
        Advisory upgrade messages, at most one per category.

        Derived from the plan itself and from re-running the checks; calling
        this has no side effects.
        """
        suggestions: Dict[str, str] = {}

        def suggest(category: str, message: str) -> None:
            suggestions.setdefault(category, message)

        if self.plan_id == PlanId.FREE:
            suggest("plan", "Upgrade to Starter for unlimited calculations and AI recommendations")
        elif self.plan_id == PlanId.STARTER:
            suggest("plan", "Upgrade to Professional for expert consultations and priority support")

        if not self.can_calculate_taxes().allowed:
            suggest("calculations", "Upgrade for unlimited tax calculations")

        if not self.can_save_company_profile().allowed:
            suggest("profiles", "Upgrade for unlimited company profiles")

        if not self.can_compare_cantons().allowed:
            suggest("comparisons", "Upgrade for unlimited canton comparisons")

        if not self.can_access_ai_recommendations().allowed:
            suggest("ai", "Upgrade for AI-powered tax optimization recommendations")

        return list(suggestions.values())


__all__ = [
    'UsageCounter',
    'normalize_usage',
    'FeatureGateResult',
    'FeatureGate',
]
