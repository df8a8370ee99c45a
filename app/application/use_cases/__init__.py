"""Aggregate application use cases."""

from .notifications import (
    notify_new_comment,
    notify_new_follower,
    notify_new_like,
)

__all__ = [
    "notify_new_comment",
    "notify_new_follower",
    "notify_new_like",
]
