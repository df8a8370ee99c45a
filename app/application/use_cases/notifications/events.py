"""Builders for the social notifications produced by follows, likes and comments."""

from __future__ import annotations

from app.domain.entities import Notification, NotificationType
from app.infrastructure.notifications import NotificationDeliveryCoordinator

COMMENT_PREVIEW_LIMIT = 50
_COMMENT_PREVIEW_KEEP = COMMENT_PREVIEW_LIMIT - 3


def comment_preview(content: str) -> str:
    """Shorten ``content`` to fit in a notification message."""

    if len(content) > COMMENT_PREVIEW_LIMIT:
        return content[:_COMMENT_PREVIEW_KEEP] + "..."
    return content


async def notify_new_follower(
    coordinator: NotificationDeliveryCoordinator,
    *,
    target_user_id: int,
    follower_id: int,
    follower_nickname: str,
) -> Notification:
    """Tell ``target_user_id`` that ``follower_nickname`` started following them."""

    return await coordinator.notify(
        target_user_id,
        NotificationType.NEW_FOLLOWER,
        "New follower",
        f"{follower_nickname} just followed you",
        follower_id,
        related_user_nickname=follower_nickname,
    )


async def notify_new_like(
    coordinator: NotificationDeliveryCoordinator,
    *,
    target_user_id: int,
    liker_id: int,
    liker_nickname: str,
    artwork_title: str,
) -> Notification:
    """Tell an artwork owner that someone liked the artwork."""

    return await coordinator.notify(
        target_user_id,
        NotificationType.NEW_LIKE,
        "New like",
        f"{liker_nickname} liked your artwork '{artwork_title}'",
        liker_id,
        related_user_nickname=liker_nickname,
    )


async def notify_new_comment(
    coordinator: NotificationDeliveryCoordinator,
    *,
    target_user_id: int,
    commenter_id: int,
    commenter_nickname: str,
    artwork_title: str,
    comment_content: str,
) -> Notification:
    """Tell an artwork owner that someone commented on the artwork."""

    message = (
        f"{commenter_nickname} commented on your artwork '{artwork_title}': "
        f"{comment_preview(comment_content)}"
    )
    return await coordinator.notify(
        target_user_id,
        NotificationType.NEW_COMMENT,
        "New comment",
        message,
        commenter_id,
        related_user_nickname=commenter_nickname,
    )


__all__ = [
    "COMMENT_PREVIEW_LIMIT",
    "comment_preview",
    "notify_new_comment",
    "notify_new_follower",
    "notify_new_like",
]
