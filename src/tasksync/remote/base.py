"""
Remote calendar client interface.

The engine talks to CalDAV-style servers exclusively through this
interface. Every coroutine here is a suspension point of a sync cycle;
timeouts and backoff, if any, belong to the implementation.
"""

from __future__ import annotations

import importlib
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from tasksync.exceptions import ConfigurationError
from tasksync.models import Account, Calendar, RemoteCalendar, RemoteTask, Task, TaskRef


class CreateResult(BaseModel):
    """Server response to a task creation."""

    href: str
    etag: str | None = None


class UpdateResult(BaseModel):
    """Server response to a task update."""

    etag: str | None = None


@runtime_checkable
class RemoteCalendarClient(Protocol):
    """
    Network client for one or more calendar accounts.

    Failures are reported by raising; ``create_task``/``update_task`` may
    also return ``None`` when the server accepted the request without
    confirming it, in which case the task stays unsynced.
    """

    def is_connected(self, account_id: str) -> bool: ...

    async def reconnect(self, account: Account) -> None: ...

    async def fetch_calendars(self, account_id: str) -> list[RemoteCalendar]: ...

    async def fetch_tasks(self, account_id: str, calendar: Calendar) -> list[RemoteTask]: ...

    async def create_task(
        self,
        account_id: str,
        calendar: Calendar,
        task: Task,
    ) -> CreateResult | None: ...

    async def update_task(self, account_id: str, task: Task) -> UpdateResult | None: ...

    async def delete_task(self, account_id: str, ref: TaskRef) -> bool: ...


def load_remote_client(path: str, **kwargs: Any) -> RemoteCalendarClient:
    """
    Instantiate a remote client from a ``"module:factory"`` path.

    Args:
        path: Import path, e.g. ``"mypkg.caldav:create_client"``
        **kwargs: Passed to the factory

    Returns:
        Client instance

    Raises:
        ConfigurationError: If the path cannot be resolved or the result
            does not implement RemoteCalendarClient
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(
            f"Invalid remote client path '{path}'. Expected 'module:factory'."
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import remote client module '{module_name}': {e}") from e

    factory = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise ConfigurationError(f"'{attr}' is not a callable in module '{module_name}'")

    client = factory(**kwargs)
    if not isinstance(client, RemoteCalendarClient):
        raise ConfigurationError(
            f"'{path}' returned {type(client).__name__}, which is not a RemoteCalendarClient"
        )
    return client
