"""
SyncService: the entry point wiring the reconciliation engine together.

Usage:
    async with SyncService(store, remote) as service:
        await service.sync_all()
        print(service.status.last_sync_time)
"""

from __future__ import annotations

import logging
from datetime import datetime
from types import TracebackType
from typing import TypeVar

from tasksync.constants import SyncTopic
from tasksync.exceptions import ConfigurationError, NotFoundError
from tasksync.models import PendingDeletion, Task
from tasksync.remote import RemoteCalendarClient, load_remote_client
from tasksync.settings import Settings, get_settings
from tasksync.store import LocalStore, SQLiteStore
from tasksync.sync import (
    AutoSyncScheduler,
    CalendarReconciler,
    ChangeNotifier,
    ConnectivityMonitor,
    DeletionQueueProcessor,
    SyncOrchestrator,
    SyncReport,
    SyncStatus,
    TagResolver,
    TaskReconciler,
    TaskSyncResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="SyncService")


class SyncService:
    """
    Facade over the store, remote client and sync components.

    Exposes the status surface (``is_syncing``, ``is_offline``,
    ``last_sync_error``, ``last_sync_time``) and the user-facing triggers.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteCalendarClient,
        *,
        connectivity: ConnectivityMonitor | None = None,
        notifier: ChangeNotifier | None = None,
        auto_sync: bool = True,
        sync_interval_minutes: float = 5,
        probe: tuple[str, int, float] | None = None,
    ) -> None:
        self.store = store
        self.remote = remote
        self.connectivity = connectivity or ConnectivityMonitor()
        self.notifier = notifier or ChangeNotifier()
        self._probe = probe

        self.tags = TagResolver(store)
        self.deletions = DeletionQueueProcessor(store, remote)
        self.calendars = CalendarReconciler(store, remote, self.notifier)
        self.tasks = TaskReconciler(
            store,
            remote,
            self.notifier,
            tags=self.tags,
            deletions=self.deletions,
        )
        self.orchestrator = SyncOrchestrator(
            store,
            remote,
            self.calendars,
            self.tasks,
            self.connectivity,
        )
        self.scheduler = AutoSyncScheduler(
            self.orchestrator,
            store,
            self.connectivity,
            enabled=auto_sync,
            interval_minutes=sync_interval_minutes,
        )
        self._started = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        remote: RemoteCalendarClient | None = None,
    ) -> SyncService:
        """
        Build a service from settings.

        Raises:
            ConfigurationError: If no remote client is given or configured
        """
        settings = settings or get_settings()
        if remote is None:
            if not settings.remote_client:
                raise ConfigurationError(
                    "No remote calendar client configured. Set TASKSYNC_REMOTE_CLIENT."
                )
            remote = load_remote_client(settings.remote_client)

        probe = None
        if settings.connectivity_probe_host:
            probe = (
                settings.connectivity_probe_host,
                settings.connectivity_probe_port,
                settings.connectivity_probe_interval,
            )

        return cls(
            SQLiteStore(settings.database_path),
            remote,
            auto_sync=settings.auto_sync,
            sync_interval_minutes=settings.sync_interval_minutes,
            probe=probe,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start connectivity probing and automatic sync."""
        if self._started:
            return
        if self._probe is not None:
            host, port, interval = self._probe
            await self.connectivity.probe(host, port)
            self.connectivity.start_probing(host, port, interval)
        self.scheduler.start()
        self._started = True
        logger.info("Sync service started")

    async def stop(self) -> None:
        """Stop all background activity."""
        if not self._started:
            return
        self.connectivity.stop_probing()
        await self.scheduler.stop()
        self._started = False
        logger.info("Sync service stopped")

    async def __aenter__(self: T) -> T:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def status(self) -> SyncStatus:
        return self.orchestrator.status

    @property
    def is_syncing(self) -> bool:
        return self.orchestrator.is_syncing

    @property
    def is_offline(self) -> bool:
        return self.connectivity.is_offline

    @property
    def last_sync_error(self) -> str | None:
        return self.orchestrator.last_sync_error

    @property
    def last_sync_time(self) -> datetime | None:
        return self.orchestrator.last_sync_time

    # =========================================================================
    # Triggers
    # =========================================================================

    async def sync_all(self) -> SyncReport | None:
        """Run a full sync cycle (dropped if one is already running)."""
        return await self.orchestrator.run_full_sync()

    async def sync_calendar(self, calendar_id: str) -> TaskSyncResult | None:
        """Reconcile one calendar's tasks."""
        return await self.orchestrator.sync_calendar(calendar_id)

    async def push_task(self, task: Task) -> bool:
        """Send one task to the server right away."""
        return await self.tasks.push_task(task)

    async def remove_task_from_server(self, task: Task) -> bool:
        """Delete one task's remote resource right away."""
        return await self.tasks.remove_from_server(task)

    async def set_active_calendar(self, calendar_id: str | None) -> TaskSyncResult | None:
        """Change the active calendar, reconciling it when it changed."""
        return await self.scheduler.set_active_calendar(calendar_id)

    def configure_auto_sync(
        self,
        *,
        enabled: bool | None = None,
        interval_minutes: float | None = None,
    ) -> None:
        self.scheduler.configure(enabled=enabled, interval_minutes=interval_minutes)

    async def delete_task(self, task_id: str) -> bool:
        """
        Delete a task as a local user action.

        If the task exists on the server, the remote deletion is attempted
        immediately when online; when offline or when the attempt fails it
        is queued and sent on the calendar's next sync.

        Returns:
            True if the server deletion already happened (or was not needed)
        """
        task = self.store.get_task(task_id)
        if task is None:
            raise NotFoundError(f"Task not found: {task_id}")

        removed = not task.is_on_server
        if not removed and self.connectivity.is_online:
            try:
                removed = await self.remove_task_from_server(task)
            except Exception as e:
                logger.warning("Remote deletion of %s failed, queueing: %s", task.title, e)

        if not removed:
            self.store.add_pending_deletion(PendingDeletion.for_task(task))
            logger.info("Queued deletion of %s for next sync", task.title)

        self.store.delete_task(task.id)
        self.notifier.publish(SyncTopic.TASKS)
        return removed
