"""Assemble the notification delivery collaborators for one application."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.config import Settings
from app.domain.ports import ConnectionRegistry, NotificationStore, OfflineQueue
from app.infrastructure.repositories import SqlAlchemyNotificationStore

from .delivery import NotificationDeliveryCoordinator
from .handler import NotificationConnectionHandler
from .manager import InMemoryConnectionRegistry
from .offline_queue import InMemoryOfflineQueue, RedisOfflineQueue

logger = logging.getLogger(__name__)


@dataclass
class NotificationRuntime:
    """Objects shared by every request that produces or consumes notifications."""

    store: NotificationStore
    queue: OfflineQueue
    registry: ConnectionRegistry
    coordinator: NotificationDeliveryCoordinator
    handler: NotificationConnectionHandler

    async def aclose(self) -> None:
        await self.queue.close()


def build_offline_queue(settings: Settings) -> OfflineQueue:
    """Return the Redis queue when ``REDIS_URL`` is set, otherwise an in-memory one."""

    if settings.redis_url:
        logger.info("Offline notification queue backed by Redis")
        return RedisOfflineQueue.from_url(
            settings.redis_url,
            ttl_seconds=settings.offline_queue_ttl_seconds,
            socket_timeout=settings.send_timeout_seconds,
        )
    logger.warning("REDIS_URL not configured; offline notifications are kept in memory")
    return InMemoryOfflineQueue(ttl_seconds=settings.offline_queue_ttl_seconds)


def build_notification_runtime(
    settings: Settings,
    session_factory: Callable[[], Session],
    *,
    queue: OfflineQueue | None = None,
    registry: ConnectionRegistry | None = None,
) -> NotificationRuntime:
    """Wire store, queue, registry, coordinator and handler together."""

    store = SqlAlchemyNotificationStore(session_factory)
    if queue is None:
        queue = build_offline_queue(settings)
    if registry is None:
        registry = InMemoryConnectionRegistry(
            send_timeout=settings.send_timeout_seconds
        )
    coordinator = NotificationDeliveryCoordinator(
        store=store, queue=queue, registry=registry
    )
    handler = NotificationConnectionHandler(registry=registry, coordinator=coordinator)
    return NotificationRuntime(
        store=store,
        queue=queue,
        registry=registry,
        coordinator=coordinator,
        handler=handler,
    )


__all__ = ["NotificationRuntime", "build_notification_runtime", "build_offline_queue"]
