"""
UI selection state persisted alongside the task data.
"""

from __future__ import annotations

from pydantic import BaseModel


class UIState(BaseModel):
    """Current user selections."""

    active_account_id: str | None = None
    active_calendar_id: str | None = None
    active_tag_id: str | None = None
    selected_task_id: str | None = None
