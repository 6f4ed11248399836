"""Calendar-day helpers that always resolve "today" in the user's zone.

Day values are compared as plain ``date`` objects. Timestamps coming from the
store are ISO strings; naive ones are treated as UTC before being moved into
the user's zone, so an evening activity never lands on the next UTC day.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _zone(tz_name: str | None):
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def local_now(tz_name: str | None = None) -> datetime:
    zone = _zone(tz_name)
    if zone is None:
        return datetime.now().astimezone()
    return datetime.now(zone)


def local_today(tz_name: str | None = None) -> date:
    return local_now(tz_name).date()


def local_date_string(day: date | datetime | None = None, tz_name: str | None = None) -> str:
    if day is None:
        day = local_today(tz_name)
    if isinstance(day, datetime):
        day = day.date()
    return day.isoformat()


def local_datetime_string(moment: datetime | None = None, tz_name: str | None = None) -> str:
    if moment is None:
        moment = local_now(tz_name)
    return moment.strftime("%Y-%m-%dT%H:%M:%S")


def days_ago(count: int, today: date) -> date:
    return today - timedelta(days=count)


def date_range(start: date, end: date) -> list[date]:
    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def week_bounds(day: date) -> tuple[date, date]:
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def parse_day(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    moment = parse_timestamp(raw)
    return moment.date() if moment else None


def parse_timestamp(value) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        try:
            moment = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def to_local_day(value, tz_name: str | None = None) -> date | None:
    """Calendar day of a timestamp in the user's zone.

    Plain ``YYYY-MM-DD`` values are already calendar days and pass through.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str) and len(value.strip()) == 10:
        return parse_day(value)
    moment = parse_timestamp(value)
    if moment is None:
        return None
    zone = _zone(tz_name)
    if zone is None:
        return moment.astimezone().date()
    return moment.astimezone(zone).date()


def is_same_local_day(first, second, tz_name: str | None = None) -> bool:
    day_a = to_local_day(first, tz_name)
    day_b = to_local_day(second, tz_name)
    return day_a is not None and day_a == day_b


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
