"""Utility helpers for reusable functionality."""

from .datetime import (
    WIRE_DATETIME_FORMAT,
    ensure_app_naive_datetime,
    ensure_app_timezone,
    format_wire_datetime,
    get_app_timezone,
    now_in_app_naive_datetime,
    now_in_app_timezone,
)

__all__ = [
    "WIRE_DATETIME_FORMAT",
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "format_wire_datetime",
    "get_app_timezone",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
]
