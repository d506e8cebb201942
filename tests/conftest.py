"""Shared fakes: change feed, maintenance source, HTTP transport."""

import asyncio
from typing import Any, Callable, Optional

import httpx
import pytest

from access_gate.errors import NotFoundError
from access_gate.models.maintenance import MaintenanceRecord
from access_gate.transport.http import HttpClient
from access_gate.transport.realtime import ChangeNotice

MAINTENANCE_TABLE = "site_maintenance"


def make_record(enabled: bool = True, record_id: str = "m1", **extra: Any) -> MaintenanceRecord:
    return MaintenanceRecord.model_validate({
        "id": record_id,
        "is_enabled": enabled,
        "maintenance_title": "Scheduled upgrade",
        "maintenance_message": "Back soon",
        "created_at": "2026-10-01T00:00:00+00:00",
        **extra,
    })


def make_http(handler: Callable[[httpx.Request], httpx.Response]) -> HttpClient:
    return HttpClient(base_url="http://gate.test", api_key="anon-key", transport=httpx.MockTransport(handler))


class FakeSubscription:
    def __init__(self, feed: "FakeFeed", table: str, handler: Callable[[ChangeNotice], None]):
        self.feed = feed
        self.table = table
        self.handler = handler
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.feed.active.remove(self)
        self.feed.close_calls += 1


class FakeFeed:
    def __init__(self) -> None:
        self.active: list[FakeSubscription] = []
        self.subscribe_calls = 0
        self.close_calls = 0

    async def subscribe(self, table: str, handler: Callable[[ChangeNotice], None]) -> FakeSubscription:
        self.subscribe_calls += 1
        sub = FakeSubscription(self, table, handler)
        self.active.append(sub)
        return sub

    def emit(self, table: str = MAINTENANCE_TABLE, event_type: str = "UPDATE") -> None:
        for sub in list(self.active):
            if sub.table == table:
                sub.handler(ChangeNotice(table, event_type))


class FakeMaintenanceAPI:
    """Returns queued results in order; the last one repeats."""

    table = MAINTENANCE_TABLE

    def __init__(self, *results: Any):
        self.results = list(results) or [NotFoundError()]
        self.calls = 0

    async def latest(self) -> MaintenanceRecord:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class GatedMaintenanceAPI:
    """Each call parks on a future the test resolves explicitly."""

    table = MAINTENANCE_TABLE

    def __init__(self) -> None:
        self.pending: list[asyncio.Future] = []

    async def latest(self) -> MaintenanceRecord:
        fut = asyncio.get_running_loop().create_future()
        self.pending.append(fut)
        return await fut


class FakeInvoker:
    def __init__(self, result: Any = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, Any]] = []

    async def invoke(self, function: str, body: Optional[dict[str, Any]] = None) -> Any:
        self.calls.append((function, body))
        if self.error is not None:
            raise self.error
        return self.result


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()
