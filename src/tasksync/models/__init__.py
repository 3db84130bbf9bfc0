"""
tasksync Data Models.

This package provides the Pydantic models shared by the local store, the
remote client interface and the reconciliation engine.

Models:
    - Account / Calendar: accounts and their calendar collections
    - RemoteCalendar: calendar as reported by the server
    - Task: local task record
    - RemoteTask: task as reported by the server
    - TaskRef: minimal remote reference used for deletion
    - PendingDeletion: queued remote deletion
    - Tag: local tag
    - UIState: persisted user selections
"""

from tasksync.models.account import Account, Calendar, RemoteCalendar, calendar_lists_equal
from tasksync.models.tag import Tag, generate_tag_color
from tasksync.models.task import (
    PendingDeletion,
    RemoteTask,
    Task,
    TaskRef,
    parse_categories,
    utc_now,
)
from tasksync.models.ui import UIState

__all__ = [
    "Account",
    "Calendar",
    "RemoteCalendar",
    "calendar_lists_equal",
    "Tag",
    "generate_tag_color",
    "Task",
    "RemoteTask",
    "TaskRef",
    "PendingDeletion",
    "parse_categories",
    "utc_now",
    "UIState",
]
