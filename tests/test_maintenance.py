"""Maintenance record reads, the redirect decision and the monitor lifecycle."""

import asyncio
import logging

import httpx
import pytest

from access_gate.errors import LookupFailure, NotFoundError, TransportError
from access_gate.maintenance import MaintenanceAPI, MaintenanceMonitor, should_redirect
from access_gate.models.maintenance import DEFAULT_TITLE, MonitorState
from access_gate.models.session import Session

from conftest import FakeMaintenanceAPI, GatedMaintenanceAPI, make_http, make_record, settle

USER = Session.for_user("u1")
ADMIN = Session.for_user("a1", role="admin")


class TestShouldRedirect:
    def test_enabled_signed_in_non_admin(self):
        assert should_redirect(make_record(enabled=True), USER) is True

    def test_admin_bypasses(self):
        assert should_redirect(make_record(enabled=True), ADMIN) is False

    @pytest.mark.parametrize("session", [USER, ADMIN, Session.anonymous()])
    def test_disabled_never_redirects(self, session):
        assert should_redirect(make_record(enabled=False), session) is False

    def test_anonymous_not_redirected(self):
        assert should_redirect(make_record(enabled=True), Session.anonymous()) is False

    def test_no_record(self):
        assert should_redirect(None, USER) is False


class TestMaintenanceAPI:
    @pytest.mark.asyncio
    async def test_latest_by_created_at(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{
                "id": "m9", "is_enabled": True,
                "maintenance_title": "", "maintenance_message": "Database upgrade",
                "estimated_completion": "2026-10-20T12:00:00Z", "contact_info": "ops@example.com",
                "created_at": "2026-10-19T08:00:00Z",
            }])

        record = await MaintenanceAPI(make_http(handler)).latest()
        params = seen[0].url.params
        assert seen[0].url.path == "/rest/v1/site_maintenance"
        assert params["order"] == "created_at.desc"
        assert params["limit"] == "1"
        assert record.id == "m9"
        assert record.is_enabled is True
        assert record.display_title == DEFAULT_TITLE
        assert record.display_message == "Database upgrade"
        assert record.contact_info == "ops@example.com"
        assert record.estimated_completion.year == 2026

    @pytest.mark.asyncio
    async def test_no_rows_raises_not_found(self):
        api = MaintenanceAPI(make_http(lambda r: httpx.Response(200, json=[])))
        with pytest.raises(NotFoundError):
            await api.latest()

    @pytest.mark.asyncio
    async def test_malformed_row_is_lookup_failure(self):
        api = MaintenanceAPI(make_http(lambda r: httpx.Response(200, json=[{"is_enabled": True}])))
        with pytest.raises(LookupFailure) as exc_info:
            await api.latest()
        assert exc_info.value.code == "lookup_failure"

    def test_record_is_frozen(self):
        record = make_record()
        with pytest.raises(Exception):
            record.is_enabled = False


class TestMonitor:
    @pytest.mark.asyncio
    async def test_mount_subscribes_and_fetches(self, feed):
        api = FakeMaintenanceAPI(make_record(enabled=True))
        monitor = MaintenanceMonitor(api, feed, session=USER)
        assert monitor.state is MonitorState.UNINITIALIZED

        await monitor.mount()
        assert feed.subscribe_calls == 1
        assert feed.active[0].table == "site_maintenance"
        assert api.calls == 1
        assert monitor.state is MonitorState.KNOWN
        assert monitor.enabled is True
        assert monitor.should_redirect is True
        await monitor.unmount()

    @pytest.mark.asyncio
    async def test_waits_for_session_resolution(self, feed):
        api = FakeMaintenanceAPI(make_record(enabled=True))
        monitor = MaintenanceMonitor(api, feed, session=Session.loading())
        await monitor.mount()
        assert api.calls == 0
        assert monitor.state is MonitorState.UNINITIALIZED
        assert monitor.loading is True

        status = await monitor.set_session(ADMIN)
        assert api.calls == 1
        assert status.state is MonitorState.KNOWN
        assert status.enabled is True
        assert status.should_redirect is False
        await monitor.unmount()

    @pytest.mark.asyncio
    async def test_no_rows_means_disabled(self, feed):
        monitor = MaintenanceMonitor(FakeMaintenanceAPI(NotFoundError()), feed, session=USER)
        async with monitor:
            assert monitor.state is MonitorState.KNOWN
            assert monitor.record is None
            assert monitor.enabled is False
            assert monitor.should_redirect is False

    @pytest.mark.asyncio
    async def test_fetch_error_keeps_previous_state(self, feed, caplog):
        api = FakeMaintenanceAPI(make_record(enabled=True), TransportError("boom"))
        monitor = MaintenanceMonitor(api, feed, session=USER)
        async with monitor:
            before = monitor.record
            with caplog.at_level(logging.ERROR, logger="access_gate.maintenance"):
                status = await monitor.refresh()
            assert status.state is MonitorState.KNOWN
            assert monitor.record is before
            assert monitor.enabled is True
        assert "Error fetching maintenance status" in caplog.text

    @pytest.mark.asyncio
    async def test_fetch_error_reports_nothing_in_flight(self, feed):
        api = FakeMaintenanceAPI(make_record(enabled=True), TransportError("boom"))
        monitor = MaintenanceMonitor(api, feed, session=USER)
        seen = []
        async with monitor:
            monitor.add_listener(seen.append)
            status = await monitor.refresh()
            assert status.state is MonitorState.KNOWN
            assert status.should_redirect is True
            assert monitor.loading is False
        assert seen == []

    @pytest.mark.asyncio
    async def test_first_fetch_error_stays_uninitialized(self, feed):
        monitor = MaintenanceMonitor(FakeMaintenanceAPI(TransportError("boom")), feed, session=USER)
        async with monitor:
            assert monitor.state is MonitorState.UNINITIALIZED
            assert monitor.loading is False
            assert monitor.should_redirect is False

    @pytest.mark.asyncio
    async def test_change_notice_triggers_full_refetch(self, feed):
        api = FakeMaintenanceAPI(make_record(enabled=False, record_id="m1"), make_record(enabled=True, record_id="m2"))
        monitor = MaintenanceMonitor(api, feed, session=USER)
        updated = asyncio.Event()
        seen = []

        def on_status(status):
            seen.append(status)
            updated.set()

        async with monitor:
            assert monitor.enabled is False
            monitor.add_listener(on_status)
            feed.emit(event_type="INSERT")
            await asyncio.wait_for(updated.wait(), timeout=1)
            assert api.calls == 2
            assert monitor.record.id == "m2"
            assert monitor.should_redirect is True
        assert seen[-1].record.id == "m2"

    @pytest.mark.asyncio
    async def test_stale_refresh_does_not_overwrite_newer(self, feed):
        api = GatedMaintenanceAPI()
        monitor = MaintenanceMonitor(api, feed, session=USER)
        first = asyncio.create_task(monitor.refresh())
        second = asyncio.create_task(monitor.refresh())
        await settle()
        assert len(api.pending) == 2
        assert monitor.state is MonitorState.CHECKING

        api.pending[1].set_result(make_record(enabled=False, record_id="newer"))
        await second
        assert monitor.state is MonitorState.CHECKING
        api.pending[0].set_result(make_record(enabled=True, record_id="older"))
        dropped = await first

        assert dropped.state is MonitorState.KNOWN
        assert dropped.record.id == "newer"
        assert monitor.state is MonitorState.KNOWN
        assert monitor.record.id == "newer"
        assert monitor.enabled is False

    @pytest.mark.asyncio
    async def test_one_subscription_per_mount(self, feed):
        monitor = MaintenanceMonitor(FakeMaintenanceAPI(make_record()), feed, session=USER)
        await monitor.mount()
        await monitor.mount()
        assert feed.subscribe_calls == 1
        assert len(feed.active) == 1

        await monitor.unmount()
        assert feed.active == []
        assert feed.close_calls == 1
        assert monitor.mounted is False

        await monitor.mount()
        assert feed.subscribe_calls == 2
        assert len(feed.active) == 1
        await monitor.unmount()
        assert feed.active == []

    @pytest.mark.asyncio
    async def test_separate_instances_do_not_share_subscriptions(self, feed):
        api = FakeMaintenanceAPI(make_record())
        async with MaintenanceMonitor(api, feed, session=USER):
            async with MaintenanceMonitor(api, feed, session=ADMIN):
                assert len(feed.active) == 2
            assert len(feed.active) == 1
        assert feed.active == []

    @pytest.mark.asyncio
    async def test_notices_after_unmount_are_ignored(self, feed):
        api = FakeMaintenanceAPI(make_record())
        monitor = MaintenanceMonitor(api, feed, session=USER)
        await monitor.mount()
        handler = feed.active[0].handler
        await monitor.unmount()
        handler(None)
        await settle()
        assert api.calls == 1

    @pytest.mark.asyncio
    async def test_listener_removal(self, feed):
        api = FakeMaintenanceAPI(make_record())
        monitor = MaintenanceMonitor(api, feed, session=USER)
        seen = []
        remove = monitor.add_listener(seen.append)
        await monitor.refresh()
        remove()
        remove()
        await monitor.refresh()
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_session_change_reevaluates_redirect(self, feed):
        api = FakeMaintenanceAPI(make_record(enabled=True))
        monitor = MaintenanceMonitor(api, feed, session=USER)
        async with monitor:
            assert monitor.should_redirect is True
            status = await monitor.set_session(ADMIN)
            assert status.should_redirect is False
            unchanged = await monitor.set_session(ADMIN)
            assert unchanged.should_redirect is False
        assert api.calls == 2
