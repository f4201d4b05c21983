"""Release-date evaluation for the viewing surface.

The codec never looks at the clock; callers pass ``now`` so a whole
page render sees one instant.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from openwhen.models import Letter, as_utc

_DAY = timedelta(days=1)
_HOUR = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_locked(letter: Letter, now: datetime) -> bool:
    if letter.release_date is None:
        return False
    return letter.release_date > as_utc(now)


def countdown(letter: Letter, now: datetime) -> str | None:
    """Human-readable time left, or None once the letter is open."""
    if not is_locked(letter, now):
        return None
    remaining = letter.release_date - as_utc(now)
    days = remaining // _DAY
    hours = (remaining % _DAY) // _HOUR
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} left"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} left"
    return "Opening soon..."


def format_release_date(value: datetime) -> str:
    """``May 1, 2026`` style date for envelope labels."""
    value = as_utc(value)
    return f"{value:%b} {value.day}, {value.year}"
