"""
Pydantic Input Models for tasksync MCP Tools.

This module defines the input validation models used by the sync tools.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResponseFormat(str, Enum):
    """Output format for tool responses."""

    MARKDOWN = "markdown"
    JSON = "json"


class BaseMCPInput(BaseModel):
    """Base input model with common configuration."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )


# =============================================================================
# Sync Input Models
# =============================================================================


class SyncAllInput(BaseMCPInput):
    """Input for running a full sync cycle."""

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' for human-readable, 'json' for machine-readable",
    )


class CalendarSyncInput(BaseMCPInput):
    """Input for reconciling a single calendar."""

    calendar_id: str = Field(
        ...,
        description="Calendar identifier as stored locally",
        min_length=1,
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )


class ActiveCalendarInput(BaseMCPInput):
    """Input for changing the active calendar."""

    calendar_id: Optional[str] = Field(
        default=None,
        description="Calendar to make active; omit to clear the selection",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )

    @field_validator("calendar_id")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


# =============================================================================
# Task Input Models
# =============================================================================


class TaskPushInput(BaseMCPInput):
    """Input for pushing one task to the server."""

    task_id: str = Field(
        ...,
        description="Local task identifier",
        min_length=1,
    )


class TaskDeleteInput(BaseMCPInput):
    """Input for deleting a task locally and on the server."""

    task_id: str = Field(
        ...,
        description="Local task identifier",
        min_length=1,
    )


# =============================================================================
# Auto-Sync Input Models
# =============================================================================


class AutoSyncInput(BaseMCPInput):
    """Input for changing automatic sync settings."""

    enabled: Optional[bool] = Field(
        default=None,
        description="Enable or disable the periodic sync timer",
    )
    interval_minutes: Optional[int] = Field(
        default=None,
        description="Minutes between automatic syncs (0 disables the timer)",
        ge=0,
        le=24 * 60,
    )
