"""
Plan models: canonical tiers and the explicit plan lookup result.
"""

from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict

ACTIVE_SUBSCRIPTION_STATES = frozenset({"active", "trialing"})


class PlanTier(str, Enum):
    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"
    UNKNOWN = "unknown"

    @property
    def is_pro(self) -> bool:
        return self in (PlanTier.PRO, PlanTier.PREMIUM)


class PlanFound(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    subscription_status: Optional[str] = None

    @property
    def subscription_active(self) -> bool:
        return (self.subscription_status or "").lower() in ACTIVE_SUBSCRIPTION_STATES


class PlanNotFound(BaseModel):
    model_config = ConfigDict(frozen=True)


class PlanLookupFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    error: str


PlanLookup = Union[PlanFound, PlanNotFound, PlanLookupFailed]


class PlanAccess(BaseModel):
    """Tier and Pro answer derived from a single billing lookup."""

    model_config = ConfigDict(frozen=True)

    tier: PlanTier = PlanTier.UNKNOWN
    pro: bool = False
