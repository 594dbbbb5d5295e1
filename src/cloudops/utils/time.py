"""Time-related helpers."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""

    return datetime.now(UTC)


def elapsed_seconds(started_at: datetime, finished_at: datetime | None = None) -> float:
    """Seconds between ``started_at`` and ``finished_at`` (default: now)."""

    return ((finished_at or utc_now()) - started_at).total_seconds()
