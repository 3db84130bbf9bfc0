"""
Constants and enumerations shared across tasksync.
"""

from __future__ import annotations

from enum import Enum


class SyncState(str, Enum):
    """Externally observable orchestrator state."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


class SyncTopic(str, Enum):
    """Views that must be refreshed after a reconciliation pass."""

    TASKS = "tasks"
    ACCOUNTS = "accounts"
    TAGS = "tags"


class TaskPriority(str, Enum):
    """Task priority as stored locally."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


OFFLINE_MESSAGE = "You are offline. Changes will sync when you reconnect."
GENERIC_SYNC_ERROR = "Sync failed"
CANCELLED_SYNC_ERROR = "Sync was cancelled before it finished"

# Separator used by the CATEGORIES property
CATEGORY_SEPARATOR = ","

# Tag colors (hex), indexed by a digest of the tag name
TAG_COLOR_PALETTE: tuple[str, ...] = (
    "#F18181",
    "#F2B04B",
    "#FFD966",
    "#86BB6D",
    "#4CAFF6",
    "#4772FA",
    "#9C87E0",
    "#E87BC5",
    "#6CC7C0",
    "#A0A8B5",
)

DEFAULT_SYNC_INTERVAL_MINUTES = 5
DEFAULT_PROBE_INTERVAL_SECONDS = 30.0
