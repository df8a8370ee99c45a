"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
import threading

import anyio

from app.domain.ports import ConnectionHandle, ConnectionRegistry

logger = logging.getLogger(__name__)

# Server-side failure; clients reconnect and receive their queued backlog.
EVICTED_CLOSE_CODE = 1011


class InMemoryConnectionRegistry(ConnectionRegistry):
    """Keep at most one live websocket per recipient inside this process.

    The map is only touched while holding ``_lock`` and the lock is never held
    across a transport write.
    """

    def __init__(self, *, send_timeout: float = 5.0) -> None:
        self._connections: dict[int, ConnectionHandle] = {}
        self._lock = threading.Lock()
        self._send_timeout = send_timeout

    def register(self, recipient_id: int, handle: ConnectionHandle) -> None:
        """Bind ``handle`` to ``recipient_id``, superseding any previous handle."""

        with self._lock:
            previous = self._connections.get(recipient_id)
            self._connections[recipient_id] = handle
        if previous is not None and previous is not handle:
            logger.info("Replaced existing connection for recipient %s", recipient_id)

    def unregister(self, recipient_id: int, handle: ConnectionHandle) -> bool:
        """Remove ``handle`` for ``recipient_id`` if it is still the current one."""

        with self._lock:
            if self._connections.get(recipient_id) is not handle:
                return False
            del self._connections[recipient_id]
        return True

    def _lookup(self, recipient_id: int) -> ConnectionHandle | None:
        with self._lock:
            return self._connections.get(recipient_id)

    async def send(self, recipient_id: int, payload: str) -> bool:
        """Write ``payload`` to the recipient's connection once.

        A failed or timed-out write evicts the handle that failed and closes
        it, so the client reconnects and its offline queue is flushed.
        """

        handle = self._lookup(recipient_id)
        if handle is None:
            logger.debug("Recipient %s has no live connection", recipient_id)
            return False

        try:
            with anyio.fail_after(self._send_timeout):
                await handle.send_text(payload)
        except Exception:
            logger.warning(
                "Live delivery to recipient %s failed; dropping connection",
                recipient_id,
                exc_info=True,
            )
            self.unregister(recipient_id, handle)
            await self._close_evicted(recipient_id, handle)
            return False
        return True

    async def _close_evicted(self, recipient_id: int, handle: ConnectionHandle) -> None:
        with anyio.move_on_after(self._send_timeout):
            try:
                await handle.close(code=EVICTED_CLOSE_CODE)
            except Exception:
                logger.debug(
                    "Evicted connection for recipient %s was already closed",
                    recipient_id,
                    exc_info=True,
                )

    def is_connected(self, recipient_id: int) -> bool:
        return self._lookup(recipient_id) is not None

    def connected_count(self) -> int:
        with self._lock:
            return len(self._connections)


__all__ = ["EVICTED_CLOSE_CODE", "InMemoryConnectionRegistry"]
