"""
Exception hierarchy for tasksync.

All errors raised by the engine derive from TaskSyncError. Remote failures
carry the operation that failed so the orchestrator can log them per unit.

Hierarchy:
    TaskSyncError
    ├── ConfigurationError
    ├── StoreError
    │   └── NotFoundError
    └── RemoteError
        ├── RemoteConnectionError
        ├── RemoteFetchError
        ├── RemotePushError
        └── RemoteDeleteError
"""

from __future__ import annotations

from typing import Any


class TaskSyncError(Exception):
    """Base exception for all tasksync errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ConfigurationError(TaskSyncError):
    """Invalid or incomplete configuration."""


class StoreError(TaskSyncError):
    """Local store failure."""


class NotFoundError(StoreError):
    """A record addressed by id does not exist in the local store."""


class RemoteError(TaskSyncError):
    """Failure reported by the remote calendar client."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        account_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.operation = operation
        self.account_id = account_id


class RemoteConnectionError(RemoteError):
    """Reconnecting an account's remote session failed."""


class RemoteFetchError(RemoteError):
    """Fetching the calendar or task list failed."""


class RemotePushError(RemoteError):
    """Creating or updating a task on the server failed."""


class RemoteDeleteError(RemoteError):
    """Deleting a task resource on the server failed."""
