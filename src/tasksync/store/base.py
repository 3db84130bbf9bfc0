"""
Local store interface.

The reconciliation engine receives a LocalStore explicitly; it never
reaches for a module-level data layer. All calls are synchronous and run
to completion between two awaits of the remote client.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from tasksync.models import Account, PendingDeletion, Tag, Task, UIState


@runtime_checkable
class LocalStore(Protocol):
    """CRUD access to accounts, tasks, tags and the deletion queue."""

    # Accounts
    def get_all_accounts(self) -> list[Account]: ...

    def get_account(self, account_id: str) -> Account | None: ...

    def update_account(self, account_id: str, **changes: Any) -> Account: ...

    # Tasks
    def get_task(self, task_id: str) -> Task | None: ...

    def get_tasks_by_calendar(self, calendar_id: str) -> list[Task]: ...

    def create_task(self, task: Task) -> Task: ...

    def update_task(self, task_id: str, **changes: Any) -> Task: ...

    def delete_task(self, task_id: str) -> None: ...

    # Tags
    def get_all_tags(self) -> list[Tag]: ...

    def create_tag(self, name: str, color: str) -> Tag: ...

    # Pending deletions
    def get_pending_deletions(self) -> list[PendingDeletion]: ...

    def add_pending_deletion(self, deletion: PendingDeletion) -> None: ...

    def clear_pending_deletion(self, uid: str) -> None: ...

    # UI state
    def get_ui_state(self) -> UIState: ...

    def update_ui_state(self, **changes: Any) -> UIState: ...
