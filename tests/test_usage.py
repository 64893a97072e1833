"""Tests for subscription status and usage counting helpers."""

from datetime import datetime, timedelta, timezone

from subscription.feature_gate import FeatureGate
from subscription.plans import PlanId
from subscription.usage import (
    Subscription,
    UsageLog,
    calculate_usage_from_logs,
    get_user_plan_id,
    is_subscription_active,
)

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _subscription(status="active", days_left=10, plan_id="starter"):
    return Subscription(
        plan_id=plan_id,
        status=status,
        current_period_end=NOW + timedelta(days=days_left),
    )


class TestSubscriptionStatus:

    def test_active_subscription(self):
        assert is_subscription_active(_subscription(), now=NOW)

    def test_expired_period(self):
        assert not is_subscription_active(_subscription(days_left=-1), now=NOW)

    def test_canceled_status(self):
        assert not is_subscription_active(_subscription(status="canceled"), now=NOW)

    def test_no_subscription(self):
        assert not is_subscription_active(None, now=NOW)

    def test_naive_period_end_is_utc(self):
        sub = Subscription(plan_id="starter", status="active", current_period_end=datetime(2025, 7, 1))
        assert is_subscription_active(sub, now=NOW)


class TestUserPlan:

    def test_active_subscription_plan(self):
        assert get_user_plan_id(_subscription(plan_id="professional"), now=NOW) is PlanId.PROFESSIONAL

    def test_inactive_subscription_falls_back_to_free(self):
        assert get_user_plan_id(_subscription(status="past_due"), now=NOW) is PlanId.FREE
        assert get_user_plan_id(None, now=NOW) is PlanId.FREE

    def test_unknown_plan_in_subscription(self):
        assert get_user_plan_id(_subscription(plan_id="legacy"), now=NOW) is PlanId.FREE


class TestUsageFromLogs:

    def test_counts_per_action(self):
        logs = [
            UsageLog(action="calculations", created_at=NOW),
            UsageLog(action="calculations", created_at=NOW),
            UsageLog(action="canton_comparisons", created_at=NOW, metadata={"canton": "ZH"}),
        ]
        assert calculate_usage_from_logs(logs) == {"calculations": 2, "canton_comparisons": 1}

    def test_empty_logs(self):
        assert calculate_usage_from_logs([]) == {}

    def test_feeds_feature_gate(self):
        logs = [UsageLog(action="calculations", created_at=NOW) for _ in range(3)]
        gate = FeatureGate(get_user_plan_id(None, now=NOW), calculate_usage_from_logs(logs))
        assert not gate.can_calculate_taxes().allowed
