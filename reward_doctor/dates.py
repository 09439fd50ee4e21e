"""
Compact <-> structured <-> canonical timestamp conversions.

The compact display form ("Aug 11, 5:59") never carries a year, so parsing it
always needs the configured assumed year.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from reward_doctor.tokens import DATE_LIKE_RE, MONTH_ABBREVIATIONS, normalize

CANONICAL_FORMAT = "%Y-%m-%d %H:%M:%S"
MONTH_INDEX = {name.lower(): idx for idx, name in enumerate(MONTH_ABBREVIATIONS)}


def resolve_timezone(name: str | tzinfo | None) -> tzinfo:
    if name is None:
        return timezone.utc
    if isinstance(name, tzinfo):
        return name
    if name.strip().upper() in {"UTC", "Z", "GMT"}:
        return timezone.utc
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{name}'") from exc


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def _localise(value: date | datetime, tz: str | tzinfo | None) -> datetime:
    dt = _as_datetime(value)
    if dt.tzinfo is not None and tz is not None:
        return dt.astimezone(resolve_timezone(tz))
    return dt


def to_compact_form(value: date | datetime, tz: str | tzinfo | None = None) -> str:
    dt = _localise(value, tz)
    return f"{MONTH_ABBREVIATIONS[dt.month - 1]} {dt.day}, {dt.hour}:{dt.minute:02d}"


def parse_compact_form(value: str, year: int) -> datetime | None:
    """Parse "Mon D, H:MM" into a naive datetime in ``year``; None when the date does not exist."""
    match = DATE_LIKE_RE.match(normalize(value))
    if not match:
        return None
    month_idx = MONTH_INDEX.get(match.group("month").lower())
    if month_idx is None:
        return None
    try:
        # datetime() refuses Feb 30 / Apr 31 instead of rolling into the next month
        return datetime(
            year,
            month_idx + 1,
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
        )
    except ValueError:
        return None


def to_canonical_form(value: date | datetime, tz: str | tzinfo | None = None) -> str:
    """Render as ``yyyy-MM-dd HH:mm:ss``; aware values are converted into ``tz`` first."""
    return _localise(value, tz).strftime(CANONICAL_FORMAT)


def parse_canonical_form(value: str) -> datetime | None:
    try:
        return datetime.strptime(normalize(value), CANONICAL_FORMAT)
    except ValueError:
        return None


def round_trip(value: date | datetime, year: int, tz: str | tzinfo | None = None) -> tuple[str, datetime | None]:
    """Force a structured timestamp through the compact form, as every date candidate must."""
    compact = to_compact_form(value, tz)
    return compact, parse_compact_form(compact, year)
