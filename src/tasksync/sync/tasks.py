"""
Task reconciliation for one calendar.

A pass runs four phases in order, each reading what the previous one
wrote:

    1. Drain the calendar's pending deletions
    2. Push unsynced local tasks (update if the task has an href, else create)
    3. Re-read local tasks and fetch the remote task list
    4. Diff local and remote by uid

Conflict policy: a task with unpushed local edits (``synced=False``) is
never overwritten from the server; once synced, a different server etag
always wins. There is no field-level merge.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tasksync.constants import SyncTopic
from tasksync.exceptions import RemoteDeleteError, RemoteFetchError, RemotePushError, StoreError
from tasksync.models import Account, Calendar, RemoteTask, Task, utc_now
from tasksync.remote import RemoteCalendarClient
from tasksync.store import LocalStore
from tasksync.sync.deletions import DeletionQueueProcessor
from tasksync.sync.notifier import ChangeNotifier
from tasksync.sync.session import ensure_connected, remote_operation
from tasksync.sync.tags import TagResolver

logger = logging.getLogger(__name__)


@dataclass
class TaskSyncResult:
    """Result of reconciling one calendar."""

    calendar_id: str
    deletions_sent: int = 0
    deletions_failed: int = 0
    pushed: int = 0
    push_failures: int = 0
    added: int = 0
    updated: int = 0
    tags_updated: int = 0
    skipped: int = 0
    deleted: int = 0
    apply_failures: int = 0

    @property
    def total(self) -> int:
        return self.added + self.updated + self.tags_updated + self.deleted

    def summary(self) -> str:
        parts = []
        if self.pushed:
            parts.append(f"{self.pushed} pushed")
        if self.push_failures:
            parts.append(f"{self.push_failures} push failures")
        if self.added:
            parts.append(f"{self.added} added")
        if self.updated:
            parts.append(f"{self.updated} updated")
        if self.tags_updated:
            parts.append(f"{self.tags_updated} retagged")
        if self.deleted:
            parts.append(f"{self.deleted} deleted")
        if self.skipped:
            parts.append(f"{self.skipped} skipped")
        if self.apply_failures:
            parts.append(f"{self.apply_failures} not applied")
        if self.deletions_sent or self.deletions_failed:
            parts.append(f"{self.deletions_sent + self.deletions_failed} deletions drained")
        return ", ".join(parts) if parts else "No changes"


class TaskReconciler:
    """Reconciles the tasks of a single calendar with the server."""

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteCalendarClient,
        notifier: ChangeNotifier | None = None,
        tags: TagResolver | None = None,
        deletions: DeletionQueueProcessor | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self._notifier = notifier or ChangeNotifier()
        self._tags = tags or TagResolver(store)
        self._deletions = deletions or DeletionQueueProcessor(store, remote)

    def _locate(self, calendar_id: str) -> tuple[Account, Calendar] | None:
        for account in self._store.get_all_accounts():
            calendar = account.find_calendar(calendar_id)
            if calendar is not None:
                return account, calendar
        return None

    # =========================================================================
    # Full Pass
    # =========================================================================

    async def reconcile(self, calendar_id: str) -> TaskSyncResult:
        """
        Run a full reconciliation pass for ``calendar_id``.

        Push failures are contained per task. A failure to reconnect or to
        fetch the remote task list propagates to the caller.
        """
        result = TaskSyncResult(calendar_id=calendar_id)
        located = self._locate(calendar_id)
        if located is None:
            logger.error("Calendar %s not found in any account", calendar_id)
            return result
        account, calendar = located

        await ensure_connected(self._remote, account)

        drained = await self._deletions.drain(account.id, calendar_id)
        result.deletions_sent = drained.deleted
        result.deletions_failed = drained.failed

        await self._push_unsynced(account, calendar, result)

        local_tasks = self._store.get_tasks_by_calendar(calendar_id)
        with remote_operation(RemoteFetchError, "fetch_tasks", account.id):
            remote_tasks = await self._remote.fetch_tasks(account.id, calendar)
        logger.info("Fetched %d tasks from %s", len(remote_tasks), calendar.display_name)

        self._apply_remote(account, calendar, local_tasks, remote_tasks, result)

        self._notifier.publish(SyncTopic.TASKS, SyncTopic.ACCOUNTS, SyncTopic.TAGS)
        logger.info("Calendar %s synced: %s", calendar.display_name, result.summary())
        return result

    async def _push_unsynced(self, account: Account, calendar: Calendar, result: TaskSyncResult) -> None:
        unsynced = [t for t in self._store.get_tasks_by_calendar(calendar.id) if not t.synced]
        logger.info("Found %d unsynced local tasks to push", len(unsynced))

        for task in unsynced:
            try:
                if await self._push_one(account, calendar, task):
                    result.pushed += 1
            except Exception as e:
                result.push_failures += 1
                logger.error("Failed to push task %s: %s", task.title, e)

    async def _push_one(self, account: Account, calendar: Calendar, task: Task) -> bool:
        """Send one task to the server and record the confirmation locally."""
        if task.href:
            logger.info("Updating task on server: %s", task.title)
            with remote_operation(RemotePushError, "update_task", account.id):
                updated = await self._remote.update_task(account.id, task)
            if updated is None:
                return False
            self._store.update_task(task.id, etag=updated.etag, synced=True)
        else:
            logger.info("Creating task on server: %s", task.title)
            with remote_operation(RemotePushError, "create_task", account.id):
                created = await self._remote.create_task(account.id, calendar, task)
            if created is None:
                return False
            self._store.update_task(task.id, href=created.href, etag=created.etag, synced=True)
        return True

    def _apply_remote(
        self,
        account: Account,
        calendar: Calendar,
        local_tasks: list[Task],
        remote_tasks: list[RemoteTask],
        result: TaskSyncResult,
    ) -> None:
        local_by_uid = {t.uid: t for t in local_tasks}
        remote_uids = {t.uid for t in remote_tasks}

        for remote_task in remote_tasks:
            try:
                self._apply_one(account, calendar, remote_task, local_by_uid, result)
            except StoreError as e:
                # e.g. the uid still belongs to a task in another calendar
                result.apply_failures += 1
                logger.error("Failed to apply server task %s: %s", remote_task.uid, e)

        for local in local_tasks:
            if local.synced and local.uid not in remote_uids:
                logger.info("Task deleted on server: %s", local.title)
                self._store.delete_task(local.id)
                result.deleted += 1

    def _apply_one(
        self,
        account: Account,
        calendar: Calendar,
        remote_task: RemoteTask,
        local_by_uid: dict[str, Task],
        result: TaskSyncResult,
    ) -> None:
        remote_tag_ids = self._tags.resolve_categories(remote_task.categories)
        local = local_by_uid.get(remote_task.uid)

        if local is None:
            logger.info("Adding new task from server: %s", remote_task.title)
            local_by_uid[remote_task.uid] = self._store.create_task(
                remote_task.to_local(account.id, calendar.id, remote_tag_ids)
            )
            result.added += 1
        elif remote_task.etag != local.etag:
            if local.synced:
                logger.info("Updating task from server: %s", remote_task.title)
                self._store.update_task(
                    local.id,
                    **remote_task.remote_fields(),
                    tags=remote_tag_ids,
                    synced=True,
                    modified_at=utc_now(),
                )
                result.updated += 1
            else:
                logger.info("Skipping server update for %s - local changes pending", remote_task.title)
                result.skipped += 1
        elif local.synced and set(remote_tag_ids) != set(local.tags):
            logger.info("Syncing tags for task: %s", remote_task.title)
            self._store.update_task(local.id, tags=remote_tag_ids, modified_at=utc_now())
            result.tags_updated += 1

    # =========================================================================
    # Single-Task Triggers
    # =========================================================================

    async def push_task(self, task: Task) -> bool:
        """
        Push one task outside a full pass.

        Returns:
            True if the server confirmed the task, False if its account or
            calendar is unknown or the server returned no confirmation
        """
        located = self._locate(task.calendar_id)
        if located is None or located[0].id != task.account_id:
            logger.warning("Cannot push task %s: account or calendar not found", task.uid)
            return False
        account, calendar = located

        await ensure_connected(self._remote, account)
        pushed = await self._push_one(account, calendar, task)
        self._notifier.publish(SyncTopic.TASKS)
        return pushed

    async def remove_from_server(self, task: Task) -> bool:
        """
        Delete one task's remote resource.

        Returns:
            True if the task was never pushed or the server deleted it,
            False if its account is unknown or the server refused
        """
        if not task.is_on_server:
            return True

        account = self._store.get_account(task.account_id)
        if account is None:
            logger.warning("Cannot delete task %s from server: account not found", task.uid)
            return False

        await ensure_connected(self._remote, account)
        with remote_operation(RemoteDeleteError, "delete_task", account.id):
            return await self._remote.delete_task(account.id, task.ref())
