from .notification import (
    ConnectionStatusRead,
    FollowNotificationTestRequest,
    NotificationRead,
    UnreadCountRead,
)

__all__ = [
    "ConnectionStatusRead",
    "FollowNotificationTestRequest",
    "NotificationRead",
    "UnreadCountRead",
]
