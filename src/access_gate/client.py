"""
AsyncAccessGate / AccessGate: wire the gating components to one backing
service. Every component gets its collaborators passed in here; nothing
reaches for a global client.
"""

import asyncio
from typing import Any, Optional, Union

import httpx

from access_gate.dispatch import ChatRequestDispatcher, CHAT_ROUTER_FUNCTION
from access_gate.maintenance import MaintenanceAPI, MaintenanceMonitor
from access_gate.models.envelope import ChatRequest, ChatRequestEnvelope
from access_gate.models.maintenance import MaintenanceRecord
from access_gate.models.plan import PlanAccess, PlanTier
from access_gate.models.session import Session
from access_gate.models.usage import QuotaCheck
from access_gate.errors import NotFoundError
from access_gate.plans import BillingAPI, PlanClassifier
from access_gate.transport.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, HttpClient
from access_gate.transport.realtime import ChangeFeed, ChangeSource
from access_gate.usage import UsageAPI


class AsyncAccessGate:
    """Async client (primary)."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        feed: Optional[ChangeSource] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        chat_function: str = CHAT_ROUTER_FUNCTION,
    ):
        self._base_url = base_url
        self.http = HttpClient(base_url=base_url, api_key=api_key, token=access_token,
                               timeout=timeout, transport=transport)
        self.feed: ChangeSource = feed or ChangeFeed(base_url, api_key=api_key, token=access_token)
        self.maintenance = MaintenanceAPI(self.http)
        self.billing = BillingAPI(self.http)
        self.usage = UsageAPI(self.http)
        self.plans = PlanClassifier(self.billing)
        self.dispatcher = ChatRequestDispatcher(self.http, function=chat_function)

    def set_token(self, access_token: Optional[str]) -> None:
        self.http.set_token(access_token)

    def maintenance_monitor(self, session: Optional[Session] = None) -> MaintenanceMonitor:
        """A fresh monitor; mount it (or use `async with`) to start listening."""
        return MaintenanceMonitor(self.maintenance, self.feed, session=session)

    async def current_maintenance(self) -> Optional[MaintenanceRecord]:
        try:
            return await self.maintenance.latest()
        except NotFoundError:
            return None

    async def plan_access(self, user_id: Optional[str]) -> PlanAccess:
        return await self.plans.access_for(user_id)

    async def plan_tier(self, user_id: Optional[str]) -> PlanTier:
        return await self.plans.tier_for(user_id)

    async def is_pro_user(self, user_id: Optional[str]) -> bool:
        return await self.plans.is_pro_user(user_id)

    async def check_quota(self, user_id: str) -> QuotaCheck:
        return await self.usage.check_quota(user_id)

    async def send_chat(self, request: Union[ChatRequestEnvelope, ChatRequest, dict[str, Any]]) -> Any:
        return await self.dispatcher.send(request)

    async def close(self) -> None:
        disconnect = getattr(self.feed, "disconnect", None)
        if disconnect is not None:
            await disconnect()
        await self.http.close()


class AccessGate:
    """Sync wrapper around AsyncAccessGate. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncAccessGate(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def dispatcher(self) -> ChatRequestDispatcher:
        return self._async.dispatcher

    def current_maintenance(self) -> Optional[MaintenanceRecord]:
        return self._run(self._async.current_maintenance())

    def plan_access(self, user_id: Optional[str]) -> PlanAccess:
        return self._run(self._async.plan_access(user_id))

    def plan_tier(self, user_id: Optional[str]) -> PlanTier:
        return self._run(self._async.plan_tier(user_id))

    def is_pro_user(self, user_id: Optional[str]) -> bool:
        return self._run(self._async.is_pro_user(user_id))

    def check_quota(self, user_id: str) -> QuotaCheck:
        return self._run(self._async.check_quota(user_id))

    def send_chat(self, request: Union[ChatRequestEnvelope, ChatRequest, dict[str, Any]]) -> Any:
        return self._run(self._async.send_chat(request))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
