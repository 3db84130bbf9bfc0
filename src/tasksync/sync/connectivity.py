"""
Connectivity monitoring.

ConnectivityMonitor is the only writer of the online/offline flag. Other
components read ``is_online`` or subscribe to transitions; a listener is
called once per actual change, never for repeated reports of the same
state.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

logger = logging.getLogger(__name__)

Listener = Callable[[], Union[None, Awaitable[None]]]


@dataclass
class _Subscription:
    on_online: Listener | None
    on_offline: Listener | None


class ConnectivityMonitor:
    """Tracks connectivity and emits online/offline transitions."""

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._subscriptions: list[_Subscription] = []
        self._pending: set[asyncio.Task] = set()
        self._probe_task: asyncio.Task | None = None

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_offline(self) -> bool:
        return not self._online

    def subscribe(
        self,
        on_online: Listener | None = None,
        on_offline: Listener | None = None,
    ) -> Callable[[], None]:
        """Register transition callbacks; returns a callable that unregisters them."""
        subscription = _Subscription(on_online, on_offline)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        """Record the current connectivity and notify on transitions."""
        if online == self._online:
            return
        self._online = online

        if online:
            logger.info("Back online")
        else:
            logger.info("Going offline, changes will be synced when back online")

        for subscription in list(self._subscriptions):
            callback = subscription.on_online if online else subscription.on_offline
            if callback is not None:
                self._dispatch(callback)

    def _dispatch(self, callback: Listener) -> None:
        try:
            outcome = callback()
        except Exception:
            logger.exception("Connectivity listener %r failed", callback)
            return

        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            self._pending.add(task)
            task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Connectivity listener failed: %s", task.exception())

    async def wait_for_listeners(self) -> None:
        """Wait until every async listener triggered so far has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Probing
    # -------------------------------------------------------------------------

    async def probe(self, host: str, port: int, timeout: float = 5.0) -> bool:
        """Check reachability of ``host:port`` and record the result."""
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
        except (OSError, asyncio.TimeoutError):
            self.set_online(False)
            return False

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        self.set_online(True)
        return True

    def start_probing(self, host: str, port: int, interval: float) -> None:
        """Probe ``host:port`` every ``interval`` seconds until stopped."""
        self.stop_probing()
        self._probe_task = asyncio.create_task(self._probe_loop(host, port, interval))
        logger.info("Probing connectivity via %s:%d every %.0fs", host, port, interval)

    def stop_probing(self) -> None:
        if self._probe_task is not None:
            self._probe_task.cancel()
            self._probe_task = None

    async def _probe_loop(self, host: str, port: int, interval: float) -> None:
        while True:
            await self.probe(host, port)
            await asyncio.sleep(interval)
