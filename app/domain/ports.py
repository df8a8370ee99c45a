"""Abstract collaborators of the notification delivery subsystem."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from app.domain.entities import Notification


class NotificationStoreError(RuntimeError):
    """Raised when the permanent notification log cannot be read or written."""


class OfflineQueueError(RuntimeError):
    """Raised when the offline queue backend is unavailable."""


@runtime_checkable
class ConnectionHandle(Protocol):
    """Minimal surface of a live transport used to push text frames."""

    async def send_text(self, data: str) -> None:  # pragma: no cover - protocol
        ...

    async def close(self, code: int = 1000) -> None:  # pragma: no cover - protocol
        ...


class NotificationStore(ABC):
    """Permanent, append-only log of notifications."""

    @abstractmethod
    def append(self, notification: Notification) -> Notification:
        """Persist ``notification`` and return it with its assigned id."""

    @abstractmethod
    def mark_read(self, notification_id: int, *, recipient_id: int | None = None) -> bool:
        """Flag a notification as read; return ``False`` when it does not exist."""

    @abstractmethod
    def list_unread(self, recipient_id: int) -> Sequence[Notification]:
        """Return unread notifications for ``recipient_id`` newest first."""

    @abstractmethod
    def list_for_recipient(
        self, recipient_id: int, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        """Return the most recent notifications for ``recipient_id``."""

    @abstractmethod
    def count_unread(self, recipient_id: int) -> int:
        """Return how many notifications ``recipient_id`` has not read yet."""


class OfflineQueue(ABC):
    """Short-lived FIFO buffer of serialized payloads per recipient."""

    @abstractmethod
    async def enqueue(self, recipient_id: int, payload: str) -> None:
        """Append ``payload`` to the tail and refresh the list expiry."""

    @abstractmethod
    async def drain(self, recipient_id: int) -> list[str]:
        """Read and clear every pending payload in enqueue order."""

    async def close(self) -> None:
        """Release backend resources."""


class ConnectionRegistry(ABC):
    """Map of recipient ids to their single live connection."""

    @abstractmethod
    def register(self, recipient_id: int, handle: ConnectionHandle) -> None:
        """Bind ``handle`` to ``recipient_id`` replacing any previous handle."""

    @abstractmethod
    def unregister(self, recipient_id: int, handle: ConnectionHandle) -> bool:
        """Remove the binding only when it still points at ``handle``."""

    @abstractmethod
    async def send(self, recipient_id: int, payload: str) -> bool:
        """Push ``payload`` once; ``True`` only when the write succeeded."""

    @abstractmethod
    def is_connected(self, recipient_id: int) -> bool:
        """Return whether ``recipient_id`` currently has a live connection."""

    @abstractmethod
    def connected_count(self) -> int:
        """Return the number of recipients with a live connection."""


__all__ = [
    "ConnectionHandle",
    "ConnectionRegistry",
    "NotificationStore",
    "NotificationStoreError",
    "OfflineQueue",
    "OfflineQueueError",
]
