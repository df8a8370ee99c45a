"""Coordinate persistence, live push and offline queueing of notifications."""

from __future__ import annotations

import json
import logging
from functools import partial
from typing import Any

from anyio import to_thread

from app.domain.entities import Notification, NotificationType
from app.domain.ports import (
    ConnectionRegistry,
    NotificationStore,
    NotificationStoreError,
    OfflineQueue,
    OfflineQueueError,
)
from app.utils import format_wire_datetime, now_in_app_timezone

logger = logging.getLogger(__name__)


class NotificationDeliveryCoordinator:
    """Persist a notification, push it live, or queue it for the next connect.

    The permanent store is written first; a notification is never pushed or
    queued unless it has been recorded there.
    """

    def __init__(
        self,
        *,
        store: NotificationStore,
        queue: OfflineQueue,
        registry: ConnectionRegistry,
    ) -> None:
        self._store = store
        self._queue = queue
        self._registry = registry

    async def notify(
        self,
        recipient_id: int,
        notification_type: NotificationType | str,
        title: str,
        message: str,
        related_id: int | None = None,
        *,
        related_user_nickname: str | None = None,
    ) -> Notification:
        """Record and deliver a notification to ``recipient_id``.

        Raises :class:`NotificationStoreError` when the notification cannot be
        stored. Delivery problems after that point are only logged.
        """

        notification = Notification(
            id=None,
            recipient_id=recipient_id,
            notification_type=NotificationType(notification_type).value,
            title=title,
            message=message,
            related_id=related_id,
            created_at=now_in_app_timezone(),
            is_read=False,
        )
        saved = await to_thread.run_sync(self._store.append, notification)

        payload = serialize_notification(saved, related_user_nickname=related_user_nickname)
        if await self._registry.send(recipient_id, payload):
            logger.info(
                "Delivered notification %s live to recipient %s", saved.id, recipient_id
            )
            return saved

        try:
            await self._queue.enqueue(recipient_id, payload)
        except OfflineQueueError:
            logger.error(
                "Notification %s for recipient %s was stored but could not be queued",
                saved.id,
                recipient_id,
                exc_info=True,
            )
            return saved

        # A connection registered after the failed send may have drained already.
        if self._registry.is_connected(recipient_id):
            await self.drain_and_deliver(recipient_id)
        return saved

    async def mark_read(
        self, notification_id: int, *, recipient_id: int | None = None
    ) -> bool:
        """Mark a notification as read; failures are logged and reported as ``False``."""

        try:
            updated = await to_thread.run_sync(
                partial(self._store.mark_read, notification_id, recipient_id=recipient_id)
            )
        except NotificationStoreError:
            logger.error("Could not mark notification %s as read", notification_id, exc_info=True)
            return False
        if not updated:
            logger.info("Notification %s not found while marking as read", notification_id)
        return updated

    async def drain_and_deliver(self, recipient_id: int) -> int:
        """Flush the offline queue of ``recipient_id`` over its live connection.

        Entries are sent in enqueue order. After the first failed write the rest
        of the drained batch is dropped; the permanent store still has them.
        Returns the number of payloads delivered.
        """

        try:
            payloads = await self._queue.drain(recipient_id)
        except OfflineQueueError:
            logger.warning(
                "Offline queue unavailable while draining recipient %s",
                recipient_id,
                exc_info=True,
            )
            return 0

        delivered = 0
        for payload in payloads:
            if not await self._registry.send(recipient_id, payload):
                logger.warning(
                    "Dropped %d queued notifications for recipient %s after a failed push",
                    len(payloads) - delivered,
                    recipient_id,
                )
                break
            delivered += 1

        if delivered:
            logger.info(
                "Delivered %d queued notifications to recipient %s", delivered, recipient_id
            )
        return delivered


def notification_to_payload(
    notification: Notification, *, related_user_nickname: str | None = None
) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    payload: dict[str, Any] = {
        "notificationId": notification.id,
        "type": notification.notification_type,
        "title": notification.title,
        "message": notification.message,
        "relatedId": notification.related_id,
        "createdAt": format_wire_datetime(notification.created_at),
        "isRead": notification.is_read,
    }
    if related_user_nickname is not None:
        payload["relatedUserNickname"] = related_user_nickname
    return payload


def serialize_notification(
    notification: Notification, *, related_user_nickname: str | None = None
) -> str:
    """Encode ``notification`` as the JSON text frame pushed to clients."""

    return json.dumps(
        notification_to_payload(notification, related_user_nickname=related_user_nickname),
        ensure_ascii=False,
    )


__all__ = [
    "NotificationDeliveryCoordinator",
    "notification_to_payload",
    "serialize_notification",
]
