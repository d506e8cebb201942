"""
Plan classification and the billing lookup behind it.

Lookups never raise to callers: anything other than a found plan with an
active subscription resolves to the least-privileged answer.
"""

import logging
from typing import Any, Optional

from access_gate.errors import AccessGateError
from access_gate.models.plan import PlanAccess, PlanFound, PlanLookup, PlanLookupFailed, PlanNotFound, PlanTier
from access_gate.transport.http import HttpClient

logger = logging.getLogger(__name__)

BILLING_TABLE = "user_billing"
BILLING_SELECT = "plan_id,subscription_status,billing_plans(name)"


def classify_plan(name: Optional[str]) -> PlanTier:
    """Canonical tier of a raw plan display name, case-insensitive."""
    lowered = (name or "").strip().lower()
    if "premium" in lowered:
        return PlanTier.PREMIUM
    if "pro" in lowered:
        return PlanTier.PRO
    if "free" in lowered:
        return PlanTier.FREE
    return PlanTier.UNKNOWN


def _plan_name(row: dict[str, Any]) -> Optional[str]:
    joined = row.get("billing_plans")
    if isinstance(joined, list):
        joined = joined[0] if joined else None
    if isinstance(joined, dict):
        name = joined.get("name")
        return name if isinstance(name, str) else None
    return None


class BillingAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def lookup_plan(self, user_id: str) -> PlanLookup:
        try:
            rows = await self._http.select(BILLING_TABLE, {
                "select": BILLING_SELECT,
                "user_id": f"eq.{user_id}",
                "limit": "1",
            })
        except AccessGateError as e:
            return PlanLookupFailed(error=e.message)
        if not rows:
            return PlanNotFound()
        name = _plan_name(rows[0])
        if name is None:
            return PlanNotFound()
        return PlanFound(name=name, subscription_status=rows[0].get("subscription_status"))


class PlanClassifier:
    def __init__(self, billing: BillingAPI):
        self._billing = billing

    async def access_for(self, user_id: Optional[str]) -> PlanAccess:
        """Tier and Pro answer from one lookup. Pro needs an active or trialing subscription."""
        if not user_id:
            return PlanAccess()
        result = await self._billing.lookup_plan(user_id)
        if isinstance(result, PlanFound):
            tier = classify_plan(result.name)
            return PlanAccess(tier=tier, pro=tier.is_pro and result.subscription_active)
        if isinstance(result, PlanNotFound):
            return PlanAccess()
        if isinstance(result, PlanLookupFailed):
            logger.error(f"Plan lookup failed for {user_id}: {result.error}")
            return PlanAccess()
        raise TypeError(f"Unexpected plan lookup result: {result!r}")

    async def tier_for(self, user_id: Optional[str]) -> PlanTier:
        return (await self.access_for(user_id)).tier

    async def is_pro_user(self, user_id: Optional[str]) -> bool:
        return (await self.access_for(user_id)).pro
