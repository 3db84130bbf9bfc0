"""
Full sync cycle orchestration.

A cycle runs strictly sequentially:

    reconnect accounts → reconcile calendars (per account)
                       → reconcile tasks (per calendar)

Every account and calendar is its own unit of work: a unit that raises is
logged and skipped, and the cycle continues with the next one. Only a
failure outside any unit (for example, the store cannot list accounts)
becomes the user-visible ``last_sync_error``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from pydantic import BaseModel

from tasksync.constants import CANCELLED_SYNC_ERROR, GENERIC_SYNC_ERROR, OFFLINE_MESSAGE, SyncState
from tasksync.models import utc_now
from tasksync.remote import RemoteCalendarClient
from tasksync.store import LocalStore
from tasksync.sync.calendars import CalendarReconciler, CalendarSyncResult
from tasksync.sync.connectivity import ConnectivityMonitor
from tasksync.sync.tasks import TaskReconciler, TaskSyncResult

logger = logging.getLogger(__name__)


class SyncStatus(BaseModel):
    """Snapshot of the status surface shown to users."""

    state: SyncState
    is_syncing: bool
    is_offline: bool
    last_sync_error: str | None = None
    last_sync_time: datetime | None = None


@dataclass
class UnitFailure:
    """A unit of work that failed during a cycle."""

    unit: str  # "reconnect", "calendars", "tasks"
    target_id: str
    error: str


@dataclass
class SyncReport:
    """Aggregate result of one full cycle."""

    started_at: datetime = field(default_factory=utc_now)
    finished_at: datetime | None = None
    calendars: list[CalendarSyncResult] = field(default_factory=list)
    tasks: list[TaskSyncResult] = field(default_factory=list)
    failures: list[UnitFailure] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def summary(self) -> str:
        if self.error:
            return f"Sync failed: {self.error}"
        changed = sum(r.total for r in self.tasks)
        pushed = sum(r.pushed for r in self.tasks)
        parts = [
            f"{len(self.tasks)} calendars synced",
            f"{pushed} pushed",
            f"{changed} local changes",
        ]
        if self.failures:
            parts.append(f"{len(self.failures)} failed units")
        return ", ".join(parts)


class SyncOrchestrator:
    """Runs full sync cycles, one at a time."""

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteCalendarClient,
        calendars: CalendarReconciler,
        tasks: TaskReconciler,
        connectivity: ConnectivityMonitor | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self._calendars = calendars
        self._tasks = tasks
        self._connectivity = connectivity or ConnectivityMonitor()

        self._state = SyncState.IDLE
        self._in_flight = False
        self._lock = asyncio.Lock()
        self._last_sync_error: str | None = None
        self._last_sync_time: datetime | None = None
        self.last_report: SyncReport | None = None
        self._cycle_listeners: list[Callable[[SyncReport], None]] = []

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._in_flight

    @property
    def last_sync_error(self) -> str | None:
        return self._last_sync_error

    @property
    def last_sync_time(self) -> datetime | None:
        return self._last_sync_time

    @property
    def status(self) -> SyncStatus:
        return SyncStatus(
            state=self._state,
            is_syncing=self._in_flight,
            is_offline=self._connectivity.is_offline,
            last_sync_error=self._last_sync_error,
            last_sync_time=self._last_sync_time,
        )

    # =========================================================================
    # Full Cycle
    # =========================================================================

    async def run_full_sync(self) -> SyncReport | None:
        """
        Run one full sync cycle.

        Returns:
            The cycle's report, or None if the trigger was dropped because
            another cycle is in flight or connectivity is down
        """
        if self._in_flight:
            logger.info("Sync already in progress; trigger dropped")
            return None

        if self._connectivity.is_offline:
            logger.info("Skipping sync - offline")
            self._last_sync_error = OFFLINE_MESSAGE
            self._state = SyncState.ERROR
            return None

        self._in_flight = True
        self._state = SyncState.SYNCING
        self._last_sync_error = None
        report = SyncReport()
        logger.info("Starting full sync")

        try:
            async with self._lock:
                await self._reconnect_accounts(report)
                await self._sync_calendars(report)
                await self._sync_tasks(report)
        except asyncio.CancelledError:
            report.error = CANCELLED_SYNC_ERROR
            self._last_sync_error = report.error
            logger.warning("Sync cancelled before completion")
            raise
        except Exception as e:
            report.error = str(e) or GENERIC_SYNC_ERROR
            self._last_sync_error = report.error
            logger.exception("Sync error")
        finally:
            self._in_flight = False
            self._last_sync_time = utc_now()
            report.finished_at = self._last_sync_time
            self._state = SyncState.ERROR if self._last_sync_error else SyncState.IDLE
            self.last_report = report
            self._notify_cycle_finished(report)

        logger.info("%s", report.summary())
        return report

    def add_cycle_listener(self, listener: Callable[[SyncReport], None]) -> Callable[[], None]:
        """
        Call ``listener`` with the report after every cycle that ran.

        Returns:
            A function that removes the listener
        """
        self._cycle_listeners.append(listener)

        def remove() -> None:
            if listener in self._cycle_listeners:
                self._cycle_listeners.remove(listener)

        return remove

    def _notify_cycle_finished(self, report: SyncReport) -> None:
        for listener in list(self._cycle_listeners):
            try:
                listener(report)
            except Exception:
                logger.exception("Cycle listener failed")

    async def _reconnect_accounts(self, report: SyncReport) -> None:
        for account in self._store.get_all_accounts():
            if self._remote.is_connected(account.id):
                continue
            try:
                await self._remote.reconnect(account)
                logger.info("Reconnected to account: %s", account.name)
            except Exception as e:
                report.failures.append(UnitFailure("reconnect", account.id, str(e)))
                logger.error("Failed to reconnect account %s: %s", account.name, e)

    async def _sync_calendars(self, report: SyncReport) -> None:
        for account in self._store.get_all_accounts():
            logger.info("Syncing calendars for account: %s", account.name)
            try:
                report.calendars.append(await self._calendars.reconcile(account.id))
            except Exception as e:
                report.failures.append(UnitFailure("calendars", account.id, str(e)))
                logger.error("Failed to sync calendars for %s: %s", account.name, e)

    async def _sync_tasks(self, report: SyncReport) -> None:
        for account in self._store.get_all_accounts():
            logger.info(
                "Processing account: %s with %d calendars",
                account.name,
                len(account.calendars),
            )
            for calendar in account.calendars:
                logger.info("Syncing tasks for calendar: %s (%s)", calendar.display_name, calendar.id)
                try:
                    report.tasks.append(await self._tasks.reconcile(calendar.id))
                except Exception as e:
                    report.failures.append(UnitFailure("tasks", calendar.id, str(e)))
                    logger.error("Failed to sync calendar %s: %s", calendar.display_name, e)

    # =========================================================================
    # Single Calendar
    # =========================================================================

    async def sync_calendar(self, calendar_id: str) -> TaskSyncResult | None:
        """
        Reconcile the tasks of one calendar outside a full cycle.

        Dropped (returns None) while a full cycle is in flight, since that
        cycle will reconcile the calendar anyway.
        """
        if self._in_flight:
            logger.info("Full sync in progress; calendar sync for %s dropped", calendar_id)
            return None
        async with self._lock:
            return await self._tasks.reconcile(calendar_id)
