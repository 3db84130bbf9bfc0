"""
Task models.

Two views of a task exist:

    - Task: the local record. ``id`` is local-only, ``uid`` is the identity
      shared with the server. ``href``/``etag`` are set only after the server
      confirmed the resource; ``synced=False`` marks unpushed local edits.
    - RemoteTask: what the remote client returns for a calendar. Its tags
      arrive as a single comma-separated CATEGORIES string.

PendingDeletion records a local deletion that has not reached the server
yet, and TaskRef is the minimal reference handed to the remote delete call.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tasksync.constants import CATEGORY_SEPARATOR, TaskPriority


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def parse_categories(value: str | None) -> list[str]:
    """
    Split a CATEGORIES string into tag names.

    Splits on comma, trims whitespace and drops empty segments.

    Examples:
        >>> parse_categories("Work, Home,, ")
        ['Work', 'Home']
    """
    if not value:
        return []
    return [part.strip() for part in value.split(CATEGORY_SEPARATOR) if part.strip()]


# Fields copied from the server version when it overwrites a local task
REMOTE_FIELDS = (
    "href",
    "etag",
    "title",
    "description",
    "completed",
    "completed_at",
    "priority",
    "start_date",
    "due_date",
    "sort_order",
)


class Task(BaseModel):
    """A task in the local store."""

    model_config = ConfigDict(validate_assignment=True, use_enum_values=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    uid: str
    account_id: str
    calendar_id: str
    href: str | None = None
    etag: str | None = None
    title: str
    description: str = ""
    completed: bool = False
    completed_at: datetime | None = None
    priority: TaskPriority = TaskPriority.NONE
    start_date: datetime | None = None
    due_date: datetime | None = None
    sort_order: int = 0
    tags: list[str] = Field(default_factory=list)
    synced: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    modified_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def new(cls, title: str, account_id: str, calendar_id: str, **kwargs: Any) -> Task:
        """Create a task from a local user action (not yet on the server)."""
        kwargs.setdefault("uid", str(uuid.uuid4()))
        return cls(
            title=title,
            account_id=account_id,
            calendar_id=calendar_id,
            synced=False,
            **kwargs,
        )

    @property
    def is_on_server(self) -> bool:
        """Whether the server has confirmed this task's existence."""
        return self.href is not None

    def ref(self) -> TaskRef:
        """Get the remote reference for this task."""
        if self.href is None:
            raise ValueError(f"Task {self.uid} has not been pushed to the server")
        return TaskRef(href=self.href)


class RemoteTask(BaseModel):
    """A task as returned by the remote calendar client."""

    model_config = ConfigDict(use_enum_values=True)

    uid: str
    href: str | None = None
    etag: str | None = None
    title: str = ""
    description: str = ""
    completed: bool = False
    completed_at: datetime | None = None
    priority: TaskPriority = TaskPriority.NONE
    start_date: datetime | None = None
    due_date: datetime | None = None
    sort_order: int = 0
    categories: str = ""

    def remote_fields(self) -> dict[str, Any]:
        """Fields that overwrite a synced local task. A missing href keeps the local one."""
        fields = {name: getattr(self, name) for name in REMOTE_FIELDS}
        if fields["href"] is None:
            del fields["href"]
        return fields

    def to_local(self, account_id: str, calendar_id: str, tag_ids: list[str]) -> Task:
        """Create the local record for a task discovered on the server."""
        return Task(
            uid=self.uid,
            account_id=account_id,
            calendar_id=calendar_id,
            tags=list(tag_ids),
            synced=True,
            **self.remote_fields(),
        )


class TaskRef(BaseModel):
    """Reference to a remote task resource."""

    model_config = ConfigDict(frozen=True)

    href: str


class PendingDeletion(BaseModel):
    """A local deletion not yet propagated to the server."""

    uid: str
    href: str
    account_id: str
    calendar_id: str

    @classmethod
    def for_task(cls, task: Task) -> PendingDeletion:
        """Queue entry for a task that exists on the server."""
        if task.href is None:
            raise ValueError(f"Task {task.uid} was never pushed; nothing to delete remotely")
        return cls(
            uid=task.uid,
            href=task.href,
            account_id=task.account_id,
            calendar_id=task.calendar_id,
        )
