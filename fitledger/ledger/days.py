# -*- coding: utf-8 -*-
"""Day-bucketing helpers.

A record's calendar day is always derived from its timestamp in the
consumer's zone; it is never stored next to the timestamp.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, List, Optional


def utc_now_iso(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds.
        try:
            return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip().replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_zone(moment: datetime, tz: Optional[tzinfo] = None) -> datetime:
    # Naive values are wall-clock times in the consumer's zone.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz) if tz is not None else moment.astimezone()
    return moment.astimezone(tz)


def day_of(value: Any, tz: Optional[tzinfo] = None) -> Optional[str]:
    moment = parse_timestamp(value)
    if moment is None:
        return None
    return to_zone(moment, tz).date().isoformat()


def parse_day(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def today(tz: Optional[tzinfo] = None) -> str:
    return datetime.now(timezone.utc).astimezone(tz).date().isoformat()


def iter_days(start: date, end: date) -> List[str]:
    if end < start:
        return []
    days: List[str] = []
    cur = start
    while cur <= end:
        days.append(cur.isoformat())
        cur = cur + timedelta(days=1)
    return days


def week_days(anchor: date) -> List[str]:
    """The seven days (Sunday first) of the week containing ``anchor``."""
    start = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
    return iter_days(start, start + timedelta(days=6))


def month_days(year: int, month: int) -> List[str]:
    last = calendar.monthrange(year, month)[1]
    return iter_days(date(year, month, 1), date(year, month, last))
