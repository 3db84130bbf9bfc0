"""
Pending deletion queue processing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tasksync.exceptions import RemoteDeleteError, TaskSyncError
from tasksync.models import TaskRef
from tasksync.remote import RemoteCalendarClient
from tasksync.store import LocalStore
from tasksync.sync.session import remote_operation

logger = logging.getLogger(__name__)


@dataclass
class DrainResult:
    """Outcome of draining one calendar's queue."""

    attempted: int = 0
    deleted: int = 0
    failed: int = 0


class DeletionQueueProcessor:
    """
    Sends queued local deletions of one calendar to the server.

    Each entry gets exactly one delete call and is cleared once the call
    resolves, whatever the outcome. A deletion that fails here is not
    retried.
    """

    def __init__(self, store: LocalStore, remote: RemoteCalendarClient) -> None:
        self._store = store
        self._remote = remote

    async def drain(self, account_id: str, calendar_id: str) -> DrainResult:
        """Attempt every pending deletion scoped to ``calendar_id``."""
        result = DrainResult()
        pending = [d for d in self._store.get_pending_deletions() if d.calendar_id == calendar_id]
        logger.info("Found %d pending deletions for calendar %s", len(pending), calendar_id)

        for deletion in pending:
            result.attempted += 1
            try:
                logger.info("Deleting task from server: %s", deletion.href)
                with remote_operation(RemoteDeleteError, "delete_task", account_id):
                    deleted = await self._remote.delete_task(account_id, TaskRef(href=deletion.href))
                if deleted:
                    result.deleted += 1
                else:
                    result.failed += 1
                    logger.error("Server refused deletion of %s; dropping it", deletion.href)
            except TaskSyncError as e:
                result.failed += 1
                logger.error("Failed to delete task %s from server; dropping it: %s", deletion.href, e)
            finally:
                self._store.clear_pending_deletion(deletion.uid)

        return result
