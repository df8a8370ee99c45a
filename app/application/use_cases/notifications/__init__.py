"""Public helpers for emitting social notifications."""

from .events import (
    comment_preview,
    notify_new_comment,
    notify_new_follower,
    notify_new_like,
)

__all__ = [
    "comment_preview",
    "notify_new_comment",
    "notify_new_follower",
    "notify_new_like",
]
