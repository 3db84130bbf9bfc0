"""
Reconciliation engine.

Components, leaves first:
    - TagResolver: tag name → tag id, creating tags on demand
    - DeletionQueueProcessor: drains queued deletions for one calendar
    - CalendarReconciler: one account's calendar list
    - TaskReconciler: one calendar's tasks
    - SyncOrchestrator: full cycle with per-unit failure isolation
    - AutoSyncScheduler / ConnectivityMonitor: automatic triggers
"""

from tasksync.sync.calendars import CalendarReconciler, CalendarSyncResult
from tasksync.sync.connectivity import ConnectivityMonitor
from tasksync.sync.deletions import DeletionQueueProcessor, DrainResult
from tasksync.sync.notifier import ChangeNotifier
from tasksync.sync.orchestrator import SyncOrchestrator, SyncReport, SyncStatus, UnitFailure
from tasksync.sync.scheduler import AutoSyncScheduler
from tasksync.sync.tags import TagResolver
from tasksync.sync.tasks import TaskReconciler, TaskSyncResult

__all__ = [
    "AutoSyncScheduler",
    "CalendarReconciler",
    "CalendarSyncResult",
    "ChangeNotifier",
    "ConnectivityMonitor",
    "DeletionQueueProcessor",
    "DrainResult",
    "SyncOrchestrator",
    "SyncReport",
    "SyncStatus",
    "TagResolver",
    "TaskReconciler",
    "TaskSyncResult",
    "UnitFailure",
]
