"""
Subscription and usage helpers.

Billing and persistence live outside this service; these helpers turn the
records they provide into the plan id and usage counters the FeatureGate needs.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from subscription.plans import PlanId, resolve_plan_id


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"


@dataclass
class Subscription:
    """A user's subscription as reported by the billing provider"""
    plan_id: str
    status: str
    current_period_end: datetime
    cancel_at_period_end: bool = False


@dataclass
class UsageLog:
    """One metered action (e.g. a calculation) in the current period"""
    action: str
    created_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


def _aware(value: datetime) -> datetime:
    # Naive timestamps are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calculate_usage_from_logs(logs: Iterable[UsageLog]) -> Dict[str, int]:
    """Count usage log entries per action."""
    return dict(Counter(log.action for log in logs))


def is_subscription_active(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    """
    A subscription is active when its status is ``active`` and the current
    period has not yet ended.
    """
    if subscription is None:
        return False
    if str(subscription.status).lower() != SubscriptionStatus.ACTIVE.value:
        return False
    now = _aware(now or datetime.now(timezone.utc))
    return _aware(subscription.current_period_end) > now


def get_user_plan_id(subscription: Optional[Subscription], now: Optional[datetime] = None) -> PlanId:
    """Plan of an active subscription; everyone else is on the free plan."""
    if not is_subscription_active(subscription, now):
        return PlanId.FREE
    return resolve_plan_id(subscription.plan_id)


__all__ = [
    'SubscriptionStatus',
    'Subscription',
    'UsageLog',
    'calculate_usage_from_logs',
    'is_subscription_active',
    'get_user_plan_id',
]
