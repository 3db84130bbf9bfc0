"""
Automatic sync triggers.

AutoSyncScheduler owns every trigger that is not an explicit user action:

    - one full sync when started, if any account is configured
    - a periodic full sync, rebuilt whenever ``enabled`` or the interval changes
      and armed after any cycle once an account exists
    - a full sync on every offline → online transition
    - a single-calendar pass when the active calendar changes

Cycles started here run as their own tasks. Rebuilding the timer or
stopping the scheduler never cancels a cycle that is already running.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from tasksync.constants import DEFAULT_SYNC_INTERVAL_MINUTES
from tasksync.store import LocalStore
from tasksync.sync.connectivity import ConnectivityMonitor
from tasksync.sync.orchestrator import SyncOrchestrator, SyncReport
from tasksync.sync.tasks import TaskSyncResult

logger = logging.getLogger(__name__)


class AutoSyncScheduler:
    """Timer and event driven sync triggers."""

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        store: LocalStore,
        connectivity: ConnectivityMonitor,
        *,
        enabled: bool = True,
        interval_minutes: float = DEFAULT_SYNC_INTERVAL_MINUTES,
    ) -> None:
        self._orchestrator = orchestrator
        self._store = store
        self._connectivity = connectivity
        self._enabled = enabled
        self._interval_minutes = interval_minutes

        self._running = False
        self._timer: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        self._unsubscribe: list[Callable[[], None]] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def interval_minutes(self) -> float:
        return self._interval_minutes

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Subscribe to connectivity, trigger the initial sync and arm the timer."""
        if self._running:
            return
        self._running = True
        self._unsubscribe = [
            self._connectivity.subscribe(on_online=self._on_online),
            self._orchestrator.add_cycle_listener(self._on_cycle_finished),
        ]

        if self._store.get_all_accounts():
            self._spawn(self._orchestrator.run_full_sync())
        self._rebuild_timer()

    async def stop(self) -> None:
        """Cancel the timer and wait for any sync this scheduler started to finish."""
        self._running = False
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self._cancel_timer()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait for every sync started by this scheduler to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def configure(
        self,
        *,
        enabled: bool | None = None,
        interval_minutes: float | None = None,
    ) -> None:
        """Change timer settings; the timer is rebuilt when anything changed."""
        changed = False
        if enabled is not None and enabled != self._enabled:
            self._enabled = enabled
            changed = True
        if interval_minutes is not None and interval_minutes != self._interval_minutes:
            if interval_minutes < 0:
                raise ValueError("interval_minutes must be >= 0")
            self._interval_minutes = interval_minutes
            changed = True

        if changed and self._running:
            self._rebuild_timer()

    # =========================================================================
    # Timer
    # =========================================================================

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _rebuild_timer(self) -> None:
        self._cancel_timer()
        if not (self._enabled and self._interval_minutes > 0):
            return
        if not self._store.get_all_accounts():
            logger.info("No accounts configured; auto-sync timer not started")
            return

        logger.info("Setting up auto-sync every %s minutes", self._interval_minutes)
        self._timer = asyncio.create_task(self._run_timer(self._interval_minutes * 60))

    async def _run_timer(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self._spawn(self.tick())

    async def tick(self) -> None:
        """One timer firing: sync unless a cycle is running or we are offline."""
        if self._orchestrator.is_syncing:
            logger.debug("Auto-sync skipped: sync in progress")
            return
        if self._connectivity.is_offline:
            logger.debug("Auto-sync skipped: offline")
            return

        logger.info("Auto-sync triggered")
        try:
            await self._orchestrator.run_full_sync()
        except Exception:
            logger.exception("Auto-sync failed")

    # =========================================================================
    # Event Triggers
    # =========================================================================

    def _on_cycle_finished(self, report: SyncReport) -> None:
        # accounts may have been added since the timer was last considered
        if self._running and not self.timer_active:
            self._rebuild_timer()

    async def _on_online(self) -> None:
        logger.info("Back online, triggering sync...")
        await self._orchestrator.run_full_sync()

    async def set_active_calendar(self, calendar_id: str | None) -> TaskSyncResult | None:
        """
        Record the user's active calendar and reconcile it if it changed.

        Returns:
            The calendar pass result, or None if nothing was synced
        """
        previous = self._store.get_ui_state().active_calendar_id
        self._store.update_ui_state(active_calendar_id=calendar_id)
        if not calendar_id or calendar_id == previous:
            return None

        try:
            return await self._orchestrator.sync_calendar(calendar_id)
        except Exception as e:
            logger.error("Failed to sync active calendar %s: %s", calendar_id, e)
            return None

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task
