"""
tasksync MCP Tools Package.

Input models and response formatters for the sync tools:
    - Sync tools (full cycle, single calendar, status)
    - Task tools (push, delete)
    - Auto-sync tools (timer settings, active calendar)
"""

from tasksync.tools.inputs import (
    ResponseFormat,
    SyncAllInput,
    CalendarSyncInput,
    ActiveCalendarInput,
    TaskPushInput,
    TaskDeleteInput,
    AutoSyncInput,
)

__all__ = [
    "ResponseFormat",
    "SyncAllInput",
    "CalendarSyncInput",
    "ActiveCalendarInput",
    "TaskPushInput",
    "TaskDeleteInput",
    "AutoSyncInput",
]
