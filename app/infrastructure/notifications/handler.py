"""Lifecycle of a recipient's notification websocket."""

from __future__ import annotations

import json
import logging
from typing import Any

from app.domain.ports import ConnectionHandle, ConnectionRegistry

from .delivery import NotificationDeliveryCoordinator

logger = logging.getLogger(__name__)

PONG_FRAME = json.dumps({"type": "pong"})


class NotificationConnectionHandler:
    """React to connect, inbound frames and disconnect for one transport."""

    def __init__(
        self,
        *,
        registry: ConnectionRegistry,
        coordinator: NotificationDeliveryCoordinator,
    ) -> None:
        self._registry = registry
        self._coordinator = coordinator

    async def on_connect(self, recipient_id: int, handle: ConnectionHandle) -> int:
        """Register ``handle`` and flush whatever was queued while offline."""

        self._registry.register(recipient_id, handle)
        logger.info("Recipient %s connected", recipient_id)
        return await self._coordinator.drain_and_deliver(recipient_id)

    async def on_message(
        self, recipient_id: int, handle: ConnectionHandle, raw: str
    ) -> None:
        """Handle a client control frame; unknown or malformed frames are ignored."""

        frame = _parse_frame(raw)
        if frame is None:
            logger.debug("Ignoring malformed frame from recipient %s", recipient_id)
            return

        frame_type = frame.get("type")
        if frame_type == "ping":
            await handle.send_text(PONG_FRAME)
            return

        if frame_type == "read_notification":
            notification_id = frame.get("notificationId")
            if isinstance(notification_id, bool) or not isinstance(notification_id, int):
                logger.debug(
                    "Ignoring read_notification without a numeric id from recipient %s",
                    recipient_id,
                )
                return
            await self._coordinator.mark_read(notification_id, recipient_id=recipient_id)
            return

        logger.debug("Ignoring frame of type %r from recipient %s", frame_type, recipient_id)

    def on_disconnect(self, recipient_id: int, handle: ConnectionHandle) -> None:
        """Forget ``handle`` unless a newer connection already replaced it."""

        if self._registry.unregister(recipient_id, handle):
            logger.info("Recipient %s disconnected", recipient_id)
        else:
            logger.debug("Stale disconnect for recipient %s ignored", recipient_id)


def _parse_frame(raw: str) -> dict[str, Any] | None:
    try:
        frame = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(frame, dict):
        return None
    return frame


__all__ = ["NotificationConnectionHandler", "PONG_FRAME"]
