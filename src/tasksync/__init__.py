"""
tasksync - Bidirectional task sync between a local store and CalDAV servers.

This package keeps a local task store consistent with one or more remote
calendar servers, and exposes the engine as an MCP server.

Architecture:
    MCP Tools Layer / SyncService
         │
         ▼
    AutoSyncScheduler (timer, reconnect, active calendar)
         │
         ▼
    SyncOrchestrator (one cycle at a time)
         │
    ┌────┴──────────────┐
    ▼                   ▼
  CalendarReconciler  TaskReconciler
                        ├── DeletionQueueProcessor
                        └── TagResolver
         │
    ┌────┴────┐
    ▼         ▼
  LocalStore  RemoteCalendarClient
"""

__version__ = "0.1.0"
__author__ = "tasksync Contributors"

from tasksync.exceptions import (
    TaskSyncError,
    ConfigurationError,
    StoreError,
    NotFoundError,
    RemoteError,
    RemoteConnectionError,
    RemoteFetchError,
    RemotePushError,
    RemoteDeleteError,
)

__all__ = [
    "__version__",
    "TaskSyncError",
    "ConfigurationError",
    "StoreError",
    "NotFoundError",
    "RemoteError",
    "RemoteConnectionError",
    "RemoteFetchError",
    "RemotePushError",
    "RemoteDeleteError",
]
