"""
Remote session helpers.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from tasksync.exceptions import RemoteConnectionError, RemoteError, TaskSyncError
from tasksync.models import Account
from tasksync.remote import RemoteCalendarClient

logger = logging.getLogger(__name__)


async def ensure_connected(remote: RemoteCalendarClient, account: Account) -> None:
    """
    Reconnect ``account`` if its remote session is not established.

    Raises:
        RemoteConnectionError: If reconnecting fails
    """
    if remote.is_connected(account.id):
        return

    try:
        await remote.reconnect(account)
    except RemoteConnectionError:
        raise
    except Exception as e:
        raise RemoteConnectionError(
            f"Failed to reconnect account {account.name}: {e}",
            operation="reconnect",
            account_id=account.id,
        ) from e
    logger.info("Reconnected to account: %s", account.name)


@contextmanager
def remote_operation(
    error_class: type[RemoteError],
    operation: str,
    account_id: str,
) -> Iterator[None]:
    """
    Re-raise client failures inside the block as ``error_class``.

    Errors that are already TaskSyncErrors pass through unchanged.
    """
    try:
        yield
    except TaskSyncError:
        raise
    except Exception as e:
        raise error_class(
            str(e) or f"{operation} failed",
            operation=operation,
            account_id=account_id,
        ) from e
