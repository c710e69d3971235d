"""Wall-clock date helpers.

The server runs in UTC while the users work in a single local zone
(``settings.local_utc_offset_minutes``, IST by default). Day-based queries
must use the local calendar day, not the UTC one.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from training_portal.core.config import settings


def local_timezone() -> timezone:
    return timezone(timedelta(minutes=settings.local_utc_offset_minutes))


def server_local_date_string(moment: datetime | None = None) -> str:
    """Return the local calendar date (YYYY-MM-DD) for *moment* (default: now)."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(local_timezone()).date().isoformat()


def local_day_bounds(day: date | str) -> tuple[datetime, datetime]:
    """Return the [start, end] instants (UTC) covering a local calendar day."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    tz = local_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def start_of_local_year(moment: datetime | None = None) -> datetime:
    """First instant (UTC) of the current local calendar year."""
    moment = moment or datetime.now(timezone.utc)
    local = moment.astimezone(local_timezone())
    start = datetime(local.year, 1, 1, tzinfo=local_timezone())
    return start.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime | None) -> datetime | None:
    """Attach UTC to naive values (SQLite hands back naive datetimes) and normalise aware ones."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
