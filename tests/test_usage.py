"""Quota RPC reads."""

import json

import httpx
import pytest

from access_gate.usage import FAIL_CLOSED, UsageAPI

from conftest import make_http


@pytest.mark.asyncio
async def test_check_quota_maps_first_row():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[
            {"can_use_ai": True, "current_usage": 12, "quota_limit": 50, "plan_name": "Pro Monthly"},
        ])

    check = await UsageAPI(make_http(handler)).check_quota("u1")
    assert check.can_use_ai is True
    assert check.snapshot.current_usage == 12
    assert check.snapshot.quota_limit == 50
    assert check.snapshot.plan_name == "Pro Monthly"
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/rest/v1/rpc/check_ai_quota"
    assert json.loads(seen[0].content) == {"user_id_param": "u1"}


@pytest.mark.asyncio
async def test_empty_result_fails_closed():
    check = await UsageAPI(make_http(lambda r: httpx.Response(200, json=[]))).check_quota("u1")
    assert check == FAIL_CLOSED
    assert check.can_use_ai is False


@pytest.mark.asyncio
async def test_error_fails_closed():
    handler = lambda r: httpx.Response(500, json={"message": "function missing"})
    check = await UsageAPI(make_http(handler)).check_quota("u1")
    assert check.can_use_ai is False
    assert check.snapshot.plan_name == "Free"
