"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository, SqlAlchemyNotificationStore

__all__ = ["NotificationRepository", "SqlAlchemyNotificationStore"]
