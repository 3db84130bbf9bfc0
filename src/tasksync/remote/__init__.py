"""
Remote calendar client interface and loader.
"""

from tasksync.remote.base import (
    CreateResult,
    RemoteCalendarClient,
    UpdateResult,
    load_remote_client,
)

__all__ = [
    "CreateResult",
    "RemoteCalendarClient",
    "UpdateResult",
    "load_remote_client",
]
