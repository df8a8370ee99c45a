"""Realtime notification delivery for the infrastructure layer."""

from .delivery import (
    NotificationDeliveryCoordinator,
    notification_to_payload,
    serialize_notification,
)
from .handler import NotificationConnectionHandler
from .manager import InMemoryConnectionRegistry
from .offline_queue import InMemoryOfflineQueue, RedisOfflineQueue, queue_key
from .runtime import NotificationRuntime, build_notification_runtime, build_offline_queue

__all__ = [
    "NotificationDeliveryCoordinator",
    "notification_to_payload",
    "serialize_notification",
    "NotificationConnectionHandler",
    "InMemoryConnectionRegistry",
    "InMemoryOfflineQueue",
    "RedisOfflineQueue",
    "queue_key",
    "NotificationRuntime",
    "build_notification_runtime",
    "build_offline_queue",
]
