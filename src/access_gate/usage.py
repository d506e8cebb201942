"""
Usage REST API: reads the check_ai_quota stored procedure.
"""

import logging
from typing import Any

from access_gate.errors import AccessGateError
from access_gate.models.usage import FREE_PLAN_NAME, FREE_QUOTA_LIMIT, QuotaCheck, UsageSnapshot
from access_gate.transport.http import HttpClient

logger = logging.getLogger(__name__)

QUOTA_RPC = "check_ai_quota"

FAIL_CLOSED = QuotaCheck(
    snapshot=UsageSnapshot(current_usage=0, quota_limit=FREE_QUOTA_LIMIT, plan_name=FREE_PLAN_NAME),
    can_use_ai=False,
)


def parse_quota_row(row: dict[str, Any]) -> QuotaCheck:
    return QuotaCheck(
        snapshot=UsageSnapshot(
            current_usage=max(0, int(row.get("current_usage") or 0)),
            quota_limit=max(0, int(row.get("quota_limit") or 0)),
            plan_name=row.get("plan_name") or FREE_PLAN_NAME,
        ),
        can_use_ai=bool(row.get("can_use_ai")),
    )


class UsageAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def check_quota(self, user_id: str) -> QuotaCheck:
        """Current usage for a user. Lookup errors fail closed (cannot use AI)."""
        try:
            rows = await self._http.rpc(QUOTA_RPC, {"user_id_param": user_id})
        except AccessGateError as e:
            logger.error(f"Quota lookup failed for {user_id}: {e}")
            return FAIL_CLOSED
        if isinstance(rows, dict):
            rows = [rows]
        if not rows:
            return FAIL_CLOSED
        try:
            return parse_quota_row(rows[0])
        except (TypeError, ValueError) as e:
            logger.error(f"Malformed quota row for {user_id}: {e}")
            return FAIL_CLOSED
