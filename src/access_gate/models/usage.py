"""
Usage models: quota snapshot and the derived status.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

FREE_PLAN_NAME = "Free"
FREE_QUOTA_LIMIT = 20


class Severity(str, Enum):
    GOOD = "Good"
    WARNING = "Warning"
    CRITICAL = "Critical"


class UsageSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_usage: int = Field(default=0, ge=0)
    quota_limit: int = Field(default=0, ge=0)
    plan_name: str = FREE_PLAN_NAME

    @property
    def remaining(self) -> int:
        return max(0, self.quota_limit - self.current_usage)

    @property
    def usage_percentage(self) -> float:
        if self.quota_limit <= 0:
            return 0.0
        return self.current_usage / self.quota_limit * 100


class QuotaStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    percentage: float
    remaining: int
    severity: Severity
    blocked: bool


class QuotaCheck(BaseModel):
    """Result of the quota RPC: the snapshot plus the external can-use decision."""

    model_config = ConfigDict(frozen=True)

    snapshot: UsageSnapshot
    can_use_ai: bool = False
