"""
In-memory LocalStore implementation.

Records are copied on the way in and out so callers never hold references
into the store's own state.
"""

from __future__ import annotations

import logging
from typing import Any

from tasksync.exceptions import NotFoundError, StoreError
from tasksync.models import Account, PendingDeletion, Tag, Task, UIState

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dict-backed local store."""

    def __init__(
        self,
        accounts: list[Account] | None = None,
        tasks: list[Task] | None = None,
        tags: list[Tag] | None = None,
    ) -> None:
        self._accounts: dict[str, Account] = {}
        self._tasks: dict[str, Task] = {}
        self._tags: dict[str, Tag] = {}
        self._pending: dict[str, PendingDeletion] = {}
        self._ui_state = UIState()

        for account in accounts or []:
            self.add_account(account)
        for task in tasks or []:
            self.create_task(task)
        for tag in tags or []:
            self._tags[tag.id] = tag.model_copy()

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def add_account(self, account: Account) -> Account:
        """Register an account."""
        self._accounts[account.id] = account.model_copy(deep=True)
        return account

    def get_all_accounts(self) -> list[Account]:
        return [a.model_copy(deep=True) for a in self._accounts.values()]

    def get_account(self, account_id: str) -> Account | None:
        account = self._accounts.get(account_id)
        return account.model_copy(deep=True) if account else None

    def update_account(self, account_id: str, **changes: Any) -> Account:
        if account_id not in self._accounts:
            raise NotFoundError(f"Account not found: {account_id}")
        data = self._accounts[account_id].model_dump()
        data.update(changes)
        updated = Account.model_validate(data)
        self._accounts[account_id] = updated
        return updated.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task else None

    def get_tasks_by_calendar(self, calendar_id: str) -> list[Task]:
        return [
            t.model_copy(deep=True)
            for t in self._tasks.values()
            if t.calendar_id == calendar_id
        ]

    def create_task(self, task: Task) -> Task:
        if task.id in self._tasks:
            raise StoreError(f"Task already exists: {task.id}")
        if any(t.uid == task.uid for t in self._tasks.values()):
            raise StoreError(f"Task uid already exists: {task.uid}")
        self._tasks[task.id] = task.model_copy(deep=True)
        return task.model_copy(deep=True)

    def update_task(self, task_id: str, **changes: Any) -> Task:
        if task_id not in self._tasks:
            raise NotFoundError(f"Task not found: {task_id}")
        changes.pop("id", None)
        data = self._tasks[task_id].model_dump()
        data.update(changes)
        updated = Task.model_validate(data)
        self._tasks[task_id] = updated
        return updated.model_copy(deep=True)

    def delete_task(self, task_id: str) -> None:
        if self._tasks.pop(task_id, None) is None:
            logger.debug("Delete of unknown task ignored: %s", task_id)

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def get_all_tags(self) -> list[Tag]:
        return [t.model_copy() for t in self._tags.values()]

    def create_tag(self, name: str, color: str) -> Tag:
        tag = Tag(name=name, color=color)
        self._tags[tag.id] = tag
        return tag.model_copy()

    # -------------------------------------------------------------------------
    # Pending Deletions
    # -------------------------------------------------------------------------

    def get_pending_deletions(self) -> list[PendingDeletion]:
        return [d.model_copy() for d in self._pending.values()]

    def add_pending_deletion(self, deletion: PendingDeletion) -> None:
        self._pending[deletion.uid] = deletion.model_copy()

    def clear_pending_deletion(self, uid: str) -> None:
        self._pending.pop(uid, None)

    # -------------------------------------------------------------------------
    # UI State
    # -------------------------------------------------------------------------

    def get_ui_state(self) -> UIState:
        return self._ui_state.model_copy()

    def update_ui_state(self, **changes: Any) -> UIState:
        self._ui_state = self._ui_state.model_copy(update=changes)
        return self._ui_state.model_copy()
