"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    """Kinds of social events that produce a notification."""

    NEW_FOLLOWER = "new_follower"
    NEW_LIKE = "new_like"
    NEW_COMMENT = "new_comment"


@dataclass
class Notification:
    """Information message delivered to a specific recipient.

    ``recipient_id``, ``notification_type`` and ``created_at`` are fixed once the
    notification has been stored; only ``is_read`` changes afterwards.
    """

    id: int | None
    recipient_id: int
    notification_type: str
    title: str
    message: str
    related_id: int | None = None
    created_at: datetime | None = None
    is_read: bool = False


__all__ = ["Notification", "NotificationType"]
