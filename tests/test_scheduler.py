"""
Auto-Sync Scheduler Tests.

This module tests the non-user sync triggers:
- Initial sync and timer setup on start
- Timer ticks skipped while syncing or offline
- Sync on offline to online transitions
- Timer rebuild on configuration change
- Active calendar changes
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from tasksync.models import Account
    from tasksync.store import InMemoryStore
    from tasksync.sync import AutoSyncScheduler, ConnectivityMonitor, SyncOrchestrator
    from tests.conftest import AccountFactory, CalendarFactory, MockRemoteClient


pytestmark = [pytest.mark.sync, pytest.mark.unit]


# =============================================================================
# Lifecycle Tests
# =============================================================================


class TestLifecycle:
    """Tests for start and stop."""

    async def test_start_runs_initial_sync_and_arms_timer(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        orchestrator: SyncOrchestrator,
    ):
        """Test starting with accounts syncs once and starts the timer."""
        scheduler.start()
        await scheduler.wait_idle()

        assert scheduler.is_running
        assert scheduler.timer_active
        mock_remote.assert_called("fetch_calendars", times=1)
        assert orchestrator.last_sync_time is not None

    async def test_start_without_accounts(
        self,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
    ):
        """Test nothing runs when no account is configured."""
        scheduler.start()
        await scheduler.wait_idle()

        assert scheduler.timer_active is False
        assert mock_remote.call_history == []

    async def test_stop_cancels_timer(self, account: Account, scheduler: AutoSyncScheduler):
        """Test stopping tears the timer down."""
        scheduler.start()
        await scheduler.stop()

        assert scheduler.is_running is False
        assert scheduler.timer_active is False

    async def test_timer_fires(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
    ):
        """Test the periodic timer triggers further cycles."""
        scheduler.configure(interval_minutes=0.0005)
        scheduler.start()

        for _ in range(50):
            if len(mock_remote.get_calls("fetch_calendars")) >= 2:
                break
            await asyncio.sleep(0.02)

        assert len(mock_remote.get_calls("fetch_calendars")) >= 2


# =============================================================================
# Tick Tests
# =============================================================================


class TestTick:
    """Tests for a single timer firing."""

    async def test_tick_skipped_while_offline(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        connectivity: ConnectivityMonitor,
    ):
        """Test the timer does nothing while offline."""
        connectivity.set_online(False)

        await scheduler.tick()

        assert mock_remote.call_history == []

    async def test_tick_skipped_while_syncing(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        orchestrator: SyncOrchestrator,
    ):
        """Test the timer does not stack a cycle on a running one."""
        mock_remote.gate = asyncio.Event()
        running = asyncio.create_task(orchestrator.run_full_sync())
        while not orchestrator.is_syncing:
            await asyncio.sleep(0)

        await scheduler.tick()

        mock_remote.gate.set()
        await running
        mock_remote.assert_called("fetch_calendars", times=1)

    async def test_tick_runs_cycle(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
    ):
        await scheduler.tick()

        mock_remote.assert_called("fetch_calendars", times=1)


# =============================================================================
# Connectivity Tests
# =============================================================================


class TestConnectivityTrigger:
    """Tests for syncing on reconnect."""

    async def test_back_online_triggers_sync(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        connectivity: ConnectivityMonitor,
    ):
        """Test an offline to online transition runs a full cycle."""
        scheduler.start()
        await scheduler.wait_idle()

        connectivity.set_online(False)
        connectivity.set_online(True)
        await connectivity.wait_for_listeners()

        mock_remote.assert_called("fetch_calendars", times=2)

    async def test_repeated_online_reports_trigger_once(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        connectivity: ConnectivityMonitor,
    ):
        """Test only actual transitions count."""
        scheduler.start()
        await scheduler.wait_idle()

        connectivity.set_online(True)
        connectivity.set_online(True)
        await connectivity.wait_for_listeners()

        mock_remote.assert_called("fetch_calendars", times=1)

    async def test_no_trigger_after_stop(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        connectivity: ConnectivityMonitor,
    ):
        """Test a stopped scheduler ignores transitions."""
        scheduler.start()
        await scheduler.wait_idle()
        await scheduler.stop()

        connectivity.set_online(False)
        connectivity.set_online(True)
        await connectivity.wait_for_listeners()

        mock_remote.assert_called("fetch_calendars", times=1)


# =============================================================================
# Configuration Tests
# =============================================================================


class TestConfigure:
    """Tests for changing auto-sync settings."""

    async def test_disable_cancels_timer(self, account: Account, scheduler: AutoSyncScheduler):
        scheduler.start()
        assert scheduler.timer_active

        scheduler.configure(enabled=False)

        assert scheduler.enabled is False
        assert scheduler.timer_active is False

    async def test_zero_interval_disables_timer(self, account: Account, scheduler: AutoSyncScheduler):
        scheduler.start()

        scheduler.configure(interval_minutes=0)

        assert scheduler.timer_active is False

    async def test_reenable_rebuilds_timer(self, account: Account, scheduler: AutoSyncScheduler):
        """Test turning auto-sync back on re-arms the timer."""
        scheduler.start()
        scheduler.configure(enabled=False)

        scheduler.configure(enabled=True, interval_minutes=10)

        assert scheduler.timer_active
        assert scheduler.interval_minutes == 10

    async def test_configure_before_start_does_not_arm(
        self,
        account: Account,
        scheduler: AutoSyncScheduler,
    ):
        scheduler.configure(interval_minutes=1)

        assert scheduler.timer_active is False

    @pytest.mark.errors
    async def test_negative_interval_rejected(self, scheduler: AutoSyncScheduler):
        with pytest.raises(ValueError):
            scheduler.configure(interval_minutes=-1)


# =============================================================================
# Active Calendar Tests
# =============================================================================


class TestActiveCalendar:
    """Tests for active calendar changes."""

    async def test_change_syncs_calendar(
        self,
        account: Account,
        store: InMemoryStore,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
    ):
        """Test selecting a new calendar records it and reconciles it."""
        result = await scheduler.set_active_calendar("cal-1")

        assert result is not None
        assert store.get_ui_state().active_calendar_id == "cal-1"
        mock_remote.assert_called("fetch_tasks", times=1)

    async def test_same_calendar_does_not_sync(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
    ):
        """Test re-selecting the active calendar is a no-op."""
        await scheduler.set_active_calendar("cal-1")

        assert await scheduler.set_active_calendar("cal-1") is None
        mock_remote.assert_called("fetch_tasks", times=1)

    async def test_clearing_selection(
        self,
        account: Account,
        store: InMemoryStore,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
    ):
        await scheduler.set_active_calendar("cal-1")

        assert await scheduler.set_active_calendar(None) is None
        assert store.get_ui_state().active_calendar_id is None

    @pytest.mark.errors
    async def test_failure_is_logged_not_raised(
        self,
        account: Account,
        store: InMemoryStore,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
    ):
        """Test a failing calendar pass does not break the selection."""
        mock_remote.failing_calendars.add("cal-1")

        assert await scheduler.set_active_calendar("cal-1") is None
        assert store.get_ui_state().active_calendar_id == "cal-1"


# =============================================================================
# Running Cycle Tests
# =============================================================================


class TestRunningCycle:
    """Tests that timer changes leave a running cycle alone."""

    async def _start_with_blocked_timer_cycle(
        self,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        orchestrator: SyncOrchestrator,
    ) -> int:
        """Start the scheduler and wait until a timer-started cycle is blocked."""
        mock_remote.gate = asyncio.Event()
        mock_remote.gate.set()
        scheduler.configure(interval_minutes=0.0005)
        scheduler.start()
        await scheduler.wait_idle()

        mock_remote.gate.clear()
        fetched_before = len(mock_remote.get_calls("fetch_tasks"))
        while not orchestrator.is_syncing:
            await asyncio.sleep(0.005)
        return fetched_before

    async def test_configure_lets_running_cycle_finish(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        orchestrator: SyncOrchestrator,
    ):
        """Test rebuilding the timer mid-cycle does not cut the cycle short."""
        fetched_before = await self._start_with_blocked_timer_cycle(mock_remote, scheduler, orchestrator)

        scheduler.configure(interval_minutes=10)
        mock_remote.gate.set()
        await scheduler.wait_idle()

        assert len(mock_remote.get_calls("fetch_tasks")) == fetched_before + 1
        report = orchestrator.last_report
        assert report.error is None
        assert [r.calendar_id for r in report.tasks] == ["cal-1"]
        assert scheduler.timer_active

    async def test_stop_waits_for_running_cycle(
        self,
        account: Account,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        orchestrator: SyncOrchestrator,
    ):
        """Test stopping lets the in-flight cycle run to completion."""
        fetched_before = await self._start_with_blocked_timer_cycle(mock_remote, scheduler, orchestrator)

        stopping = asyncio.create_task(scheduler.stop())
        await asyncio.sleep(0)
        mock_remote.gate.set()
        await stopping

        assert len(mock_remote.get_calls("fetch_tasks")) == fetched_before + 1
        assert orchestrator.last_report.error is None
        assert scheduler.timer_active is False

    async def test_timer_arms_after_first_account_syncs(
        self,
        store: InMemoryStore,
        mock_remote: MockRemoteClient,
        scheduler: AutoSyncScheduler,
        orchestrator: SyncOrchestrator,
        account_factory: type[AccountFactory],
        calendar_factory: type[CalendarFactory],
    ):
        """Test an account added after start gets the timer once a cycle ran."""
        scheduler.start()
        assert scheduler.timer_active is False

        store.add_account(
            account_factory.create(
                id="acct-1",
                calendars=[calendar_factory.create(id="cal-1", account_id="acct-1")],
            )
        )
        mock_remote.add_calendar("acct-1", calendar_factory.remote(id="cal-1"))
        await orchestrator.run_full_sync()

        assert scheduler.timer_active

    async def test_stopped_scheduler_does_not_rearm(
        self,
        account: Account,
        scheduler: AutoSyncScheduler,
        orchestrator: SyncOrchestrator,
    ):
        scheduler.start()
        await scheduler.stop()

        await orchestrator.run_full_sync()

        assert scheduler.timer_active is False
