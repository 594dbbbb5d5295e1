"""Utility helpers."""

from .naming import sanitize_name
from .time import elapsed_seconds, utc_now

__all__ = ["elapsed_seconds", "sanitize_name", "utc_now"]
