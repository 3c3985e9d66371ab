"""Timestamp and duration helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .constants import UTC_TIMESTAMP_FORMAT

_DAY = 86400
_HOUR = 3600
_MINUTE = 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_utc(value: datetime) -> str:
    return _coerce_to_utc(value).strftime(UTC_TIMESTAMP_FORMAT)


def parse_utc(value: str) -> datetime:
    parsed = datetime.strptime(value, UTC_TIMESTAMP_FORMAT)
    return parsed.replace(tzinfo=timezone.utc)


def format_duration(duration: timedelta | int) -> str:
    """Render a duration like ``3d, 4h`` or ``12min, 5s``.

    Only the two most significant units are shown and smaller units are
    truncated, not rounded. Negative durations render as ``0s``.
    """
    secs = int(duration.total_seconds()) if isinstance(duration, timedelta) else int(duration)
    secs = max(secs, 0)

    days, secs = divmod(secs, _DAY)
    hours, secs = divmod(secs, _HOUR)
    minutes, secs = divmod(secs, _MINUTE)

    if days:
        return f"{days}d, {hours}h" if hours else f"{days}d"
    if hours:
        return f"{hours}h, {minutes}min" if minutes else f"{hours}h"
    if minutes:
        return f"{minutes}min, {secs}s" if secs else f"{minutes}min"
    return f"{secs}s"


def _coerce_to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("UTC datetime value must be timezone-aware.")
    return value.astimezone(timezone.utc)
