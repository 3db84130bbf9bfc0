"""
Calendar list reconciliation for one account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tasksync.constants import SyncTopic
from tasksync.exceptions import RemoteFetchError
from tasksync.models import Calendar, calendar_lists_equal
from tasksync.remote import RemoteCalendarClient
from tasksync.store import LocalStore
from tasksync.sync.notifier import ChangeNotifier
from tasksync.sync.session import ensure_connected, remote_operation

logger = logging.getLogger(__name__)


@dataclass
class CalendarSyncResult:
    """Result of reconciling one account's calendars."""

    account_id: str
    added: int = 0
    updated: int = 0
    removed: int = 0
    tasks_removed: int = 0
    persisted: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)


class CalendarReconciler:
    """Brings an account's local calendar list in line with the server's."""

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteCalendarClient,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self._notifier = notifier or ChangeNotifier()

    async def reconcile(self, account_id: str) -> CalendarSyncResult:
        """
        Reconcile the calendars of ``account_id``.

        Remote calendars are taken in server order: known ids get the
        server's display name, color, ctag and sync token, unknown ids are
        appended. Local calendars the server no longer reports are dropped
        together with all of their tasks. The account is written back only
        when the resulting list differs from the stored one.
        """
        result = CalendarSyncResult(account_id=account_id)
        account = self._store.get_account(account_id)
        if account is None:
            logger.warning("Account %s not found; skipping calendar sync", account_id)
            return result

        await ensure_connected(self._remote, account)

        logger.info("Fetching calendars for account: %s", account.name)
        with remote_operation(RemoteFetchError, "fetch_calendars", account_id):
            remote_calendars = await self._remote.fetch_calendars(account_id)
        logger.info(
            "Found %d calendars on server: %s",
            len(remote_calendars),
            [c.display_name for c in remote_calendars],
        )

        local_calendars = account.calendars
        local_by_id = {c.id: c for c in local_calendars}
        remote_ids = {c.id for c in remote_calendars}

        updated_calendars: list[Calendar] = []
        for remote_calendar in remote_calendars:
            local = local_by_id.get(remote_calendar.id)
            if local is None:
                logger.info("New calendar from server: %s", remote_calendar.display_name)
                updated_calendars.append(remote_calendar.to_calendar(account_id))
                result.added += 1
            elif local.differs_from(remote_calendar):
                logger.info("Updating calendar properties: %s", remote_calendar.display_name)
                updated_calendars.append(local.with_remote_properties(remote_calendar))
                result.updated += 1
            else:
                updated_calendars.append(local)

        for local in local_calendars:
            if local.id in remote_ids:
                continue
            logger.info("Calendar deleted on server: %s", local.display_name)
            for task in self._store.get_tasks_by_calendar(local.id):
                self._store.delete_task(task.id)
                result.tasks_removed += 1
            result.removed += 1

        if not calendar_lists_equal(updated_calendars, local_calendars):
            logger.info("Updating account calendars: %d calendars", len(updated_calendars))
            self._store.update_account(account_id, calendars=updated_calendars)
            result.persisted = True
            self._notifier.publish(SyncTopic.ACCOUNTS, SyncTopic.TASKS)

        return result
