"""Pydantic models describing notification payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities import Notification
from app.utils import format_wire_datetime


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., alias="notificationId")
    notification_type: str = Field(..., alias="type")
    title: str
    message: str
    related_id: int | None = Field(default=None, alias="relatedId")
    created_at: str | None = Field(
        default=None, alias="createdAt", description="YYYY-MM-DD HH:MM:SS"
    )
    is_read: bool = Field(default=False, alias="isRead")

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id or 0,
            notification_type=notification.notification_type,
            title=notification.title,
            message=notification.message,
            related_id=notification.related_id,
            created_at=format_wire_datetime(notification.created_at),
            is_read=notification.is_read,
        )


class UnreadCountRead(BaseModel):
    """Number of notifications the user has not read yet."""

    model_config = ConfigDict(populate_by_name=True)

    unread_count: int = Field(..., alias="unreadCount")


class ConnectionStatusRead(BaseModel):
    """Live websocket connections currently held by this process."""

    model_config = ConfigDict(populate_by_name=True)

    connected_users: int = Field(..., alias="connectedUsers")


class FollowNotificationTestRequest(BaseModel):
    """Input for the development endpoint that fakes a follow event."""

    model_config = ConfigDict(populate_by_name=True)

    target_user_id: int = Field(..., alias="targetUserId", gt=0)
    follower_id: int = Field(..., alias="followerId", gt=0)
    follower_nickname: str = Field(
        default="tester", alias="followerNickname", min_length=1, max_length=50
    )


__all__ = [
    "ConnectionStatusRead",
    "FollowNotificationTestRequest",
    "NotificationRead",
    "UnreadCountRead",
]
