"""
Maintenance mode: the current site_maintenance record and the redirect
decision derived from it.

MaintenanceMonitor lifecycle:
- Uninitialized until the session's auth state is resolved.
- Checking while at least one refresh is in flight.
- Known once a refresh has been applied.

Every change notice on the table triggers a full refetch. Overlapping
refreshes are ordered by a ticket counter: a result is applied only if its
ticket is newer than the last applied one.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from access_gate.errors import AccessGateError, LookupFailure, NotFoundError
from access_gate.models.maintenance import MaintenanceRecord, MaintenanceStatus, MonitorState
from access_gate.models.session import Session
from access_gate.transport.http import HttpClient
from access_gate.transport.realtime import ChangeNotice, ChangeSource

logger = logging.getLogger(__name__)

MAINTENANCE_TABLE = "site_maintenance"

StatusListener = Callable[[MaintenanceStatus], None]


def should_redirect(record: Optional[MaintenanceRecord], session: Session) -> bool:
    """Non-admin signed-in users are sent to the maintenance page."""
    if record is None:
        return False
    return record.is_enabled and session.authenticated and not session.is_admin


class MaintenanceAPI:
    def __init__(self, http: HttpClient, table: str = MAINTENANCE_TABLE):
        self._http = http
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    async def latest(self) -> MaintenanceRecord:
        """Newest record by created_at. Raises NotFoundError when the table is empty."""
        rows = await self._http.select(self._table, {
            "select": "*",
            "order": "created_at.desc",
            "limit": "1",
        })
        if not rows:
            raise NotFoundError(f"No rows in {self._table}")
        try:
            return MaintenanceRecord.model_validate(rows[0])
        except ValidationError as e:
            raise LookupFailure(f"Malformed {self._table} row", details={"errors": e.errors()}) from e


class MaintenanceMonitor:
    def __init__(
        self,
        api: MaintenanceAPI,
        feed: ChangeSource,
        session: Optional[Session] = None,
    ):
        self._api = api
        self._feed = feed
        self._session = session or Session.loading()
        self._record: Optional[MaintenanceRecord] = None
        self._subscription: Optional[Any] = None
        self._issued = 0
        self._applied = 0
        self._pending = 0
        self._tasks: set[asyncio.Task[Any]] = set()
        self._listeners: list[StatusListener] = []

    # ─── state ───────────────────────────────────────────────────

    @property
    def state(self) -> MonitorState:
        if self._pending > 0:
            return MonitorState.CHECKING
        if self._applied > 0:
            return MonitorState.KNOWN
        return MonitorState.UNINITIALIZED

    @property
    def loading(self) -> bool:
        if self.state is MonitorState.CHECKING:
            return True
        return self.state is MonitorState.UNINITIALIZED and not self._session.resolved

    @property
    def session(self) -> Session:
        return self._session

    @property
    def record(self) -> Optional[MaintenanceRecord]:
        return self._record

    @property
    def enabled(self) -> bool:
        return self._record is not None and self._record.is_enabled

    @property
    def should_redirect(self) -> bool:
        return should_redirect(self._record, self._session)

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    def status(self) -> MaintenanceStatus:
        return MaintenanceStatus(
            state=self.state,
            enabled=self.enabled,
            record=self._record,
            should_redirect=self.should_redirect,
        )

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Called with the new status after each applied refresh. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    # ─── lifecycle ───────────────────────────────────────────────

    async def mount(self) -> None:
        if self._subscription is not None:
            return
        self._subscription = await self._feed.subscribe(self._api.table, self._on_change)
        logger.debug(f"Subscribed to {self._api.table} changes")
        if self._session.resolved and self._applied == 0 and self._pending == 0:
            await self.refresh()

    async def unmount(self) -> None:
        subscription, self._subscription = self._subscription, None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if subscription is not None:
            await subscription.close()
            logger.debug(f"Unsubscribed from {self._api.table} changes")

    async def __aenter__(self) -> "MaintenanceMonitor":
        await self.mount()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.unmount()

    async def set_session(self, session: Session) -> MaintenanceStatus:
        """Swap in the latest auth state; a resolved change triggers a refetch."""
        changed = session != self._session
        self._session = session
        if session.resolved and (changed or self.state is MonitorState.UNINITIALIZED):
            return await self.refresh()
        return self.status()

    # ─── refresh ─────────────────────────────────────────────────

    def _on_change(self, notice: ChangeNotice) -> None:
        if self._subscription is None:
            return
        logger.debug(f"Maintenance change notice: {notice!r}")
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def refresh(self) -> MaintenanceStatus:
        """Refetch the latest record. Listeners hear only about applied results."""
        self._issued += 1
        ticket = self._issued
        applied = False
        self._pending += 1
        try:
            record = await self._fetch()
        except AccessGateError as e:
            logger.error(f"Error fetching maintenance status: {e}")
        else:
            if ticket > self._applied:
                self._applied = ticket
                self._record = record
                applied = True
            else:
                logger.debug(f"Dropping stale maintenance refresh #{ticket} (applied #{self._applied})")
        finally:
            self._pending -= 1

        status = self.status()
        if applied:
            for listener in list(self._listeners):
                listener(status)
        return status

    async def _fetch(self) -> Optional[MaintenanceRecord]:
        try:
            return await self._api.latest()
        except NotFoundError:
            return None
