# utils/datetime_utils.py

import re
from datetime import datetime, date, time, timedelta
from typing import Iterator, Union

from config import config

DATE_FORMAT = "%Y-%m-%d"
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

Instant = Union[datetime, date, str]

def _zone(tz=None):
    return tz or config.timezone

def now_local(tz=None) -> datetime:
    return datetime.now(_zone(tz))

def today_local(tz=None) -> date:
    return now_local(tz).date()

def validate_date(value) -> bool:
    """Строгая проверка формата YYYY-MM-DD с реальной датой григорианского календаря"""
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return False
    return True

def parse_day(value: str) -> date:
    if not validate_date(value):
        raise ValueError(f"Invalid calendar date: {value!r}")
    return datetime.strptime(value, DATE_FORMAT).date()

def start_of_day(instant: Instant, tz=None) -> date:
    """
    Календарный день момента времени в локальной зоне.

    Aware datetime переводится в локальную зону, naive datetime считается
    локальным временем, date возвращается как есть.
    """
    if isinstance(instant, str):
        if len(instant) == 10:
            return parse_day(instant)
        instant = datetime.fromisoformat(instant)
    if isinstance(instant, datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone(_zone(tz))
        return instant.date()
    if isinstance(instant, date):
        return instant
    raise TypeError(f"Unsupported instant type: {type(instant).__name__}")

def local_midnight(day: Instant, tz=None) -> datetime:
    """Локальная полночь календарного дня (aware datetime)"""
    zone = _zone(tz)
    return zone.localize(datetime.combine(start_of_day(day, zone), time.min))

def is_same_day(a: Instant, b: Instant, tz=None) -> bool:
    return start_of_day(a, tz) == start_of_day(b, tz)

def day_count(start: date, end: date) -> int:
    """Количество дней в периоде [start, end] включительно"""
    return (end - start).days + 1

def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
