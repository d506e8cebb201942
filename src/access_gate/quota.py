"""
Quota policy and the compact usage display.

Everything here is pure: the same inputs always give the same status, and
nothing is cached between calls.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from access_gate.models.usage import FREE_PLAN_NAME, QuotaStatus, Severity, UsageSnapshot

CRITICAL_THRESHOLD = 95.0
WARNING_THRESHOLD = 80.0


def severity_for(percentage: float) -> Severity:
    if percentage >= CRITICAL_THRESHOLD:
        return Severity.CRITICAL
    if percentage >= WARNING_THRESHOLD:
        return Severity.WARNING
    return Severity.GOOD


def evaluate_quota(current_usage: int, quota_limit: int, can_use_ai: bool) -> QuotaStatus:
    """Map usage against a limit to percentage, remaining, severity and blocked.

    blocked follows can_use_ai only; a plan cutoff decided upstream can block
    a user whose percentage is still low.
    """
    snapshot = UsageSnapshot(current_usage=current_usage, quota_limit=quota_limit)
    percentage = snapshot.usage_percentage
    return QuotaStatus(
        percentage=percentage,
        remaining=snapshot.remaining,
        severity=severity_for(percentage),
        blocked=not can_use_ai,
    )


class UsageLine(BaseModel):
    """Values of the compact usage widget, ready for any renderer."""

    model_config = ConfigDict(frozen=True)

    plan_name: str
    plan_badge: str           # "secondary" for the Free plan, else "default"
    counter: str              # "{current}/{limit}"
    remaining_label: str      # "{remaining} left"
    percentage: float
    aria_label: str
    severity: Severity
    blocked: bool
    blocked_label: Optional[str] = None


def describe_usage(snapshot: UsageSnapshot, can_use_ai: bool) -> UsageLine:
    status = evaluate_quota(snapshot.current_usage, snapshot.quota_limit, can_use_ai)
    return UsageLine(
        plan_name=snapshot.plan_name,
        plan_badge="secondary" if snapshot.plan_name == FREE_PLAN_NAME else "default",
        counter=f"{snapshot.current_usage}/{snapshot.quota_limit}",
        remaining_label=f"{status.remaining} left",
        percentage=status.percentage,
        aria_label=f"{status.percentage:.1f}% of AI quota used",
        severity=status.severity,
        blocked=status.blocked,
        blocked_label="Quota exceeded" if status.blocked else None,
    )
