"""Domain entities."""

from .notification import Notification, NotificationType

__all__ = ["Notification", "NotificationType"]
