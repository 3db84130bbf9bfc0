"""
Change notification for views that depend on synced data.
"""

from __future__ import annotations

import logging
from typing import Callable

from tasksync.constants import SyncTopic

logger = logging.getLogger(__name__)

ChangeListener = Callable[[frozenset[SyncTopic]], None]


class ChangeNotifier:
    """Publishes which kinds of data a reconciliation pass may have changed."""

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, *topics: SyncTopic) -> None:
        """Notify every listener. A failing listener does not affect the others."""
        if not topics:
            return
        changed = frozenset(topics)
        for listener in list(self._listeners):
            try:
                listener(changed)
            except Exception:
                logger.exception("Change listener %r failed", listener)
