# services/statistics.py

import calendar
import logging
from datetime import date, timedelta
from enum import Enum
from fractions import Fraction
from typing import Iterable, List, Optional, Tuple

from core import ledger
from core.models import Habit, JournalEntry
from utils.datetime_utils import iter_days

logger = logging.getLogger(__name__)

# День считается удачным, если выполнена хотя бы половина привычек
GOOD_DAY_THRESHOLD = Fraction(1, 2)

class StatsPeriod(Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL_TIME = "all"

def _shift_months(day: date, months: int) -> date:
    month_index = day.year * 12 + day.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))

def period_range(period: StatsPeriod, today: date, habits: Iterable[Habit] = ()) -> Tuple[date, date]:
    """Границы периода [start, today] включительно"""
    if period == StatsPeriod.WEEK:
        start = today - timedelta(days=6)
    elif period == StatsPeriod.MONTH:
        start = _shift_months(today, 1) + timedelta(days=1)
    elif period == StatsPeriod.YEAR:
        start = _shift_months(today, 12) + timedelta(days=1)
    else:
        created = [habit.created_day for habit in habits]
        start = min(min(created), today) if created else today
    return start, today

def overall_period_rate(habits: Iterable[Habit], start: date, end: date) -> Fraction:
    """Доля выполненных (привычка, день) за период; дни до создания привычки не учитываются"""
    possible = 0
    completed = 0
    for habit in habits:
        effective_start = max(start, habit.created_day)
        for day in iter_days(effective_start, end):
            possible += 1
            if habit.is_completed_on(day):
                completed += 1

    return Fraction(completed, possible) if possible else Fraction(0)

def weekly_rates(habits: Iterable[Habit], today: date) -> List[Tuple[date, Fraction]]:
    """Процент выполнения по дням за последние 7 дней (для графика)"""
    habits = list(habits)
    return [
        (day, ledger.completion_rate(habits, day))
        for day in iter_days(today - timedelta(days=6), today)
    ]

def _is_good_day(habits: List[Habit], day: date) -> bool:
    return bool(habits) and ledger.completion_rate(habits, day) >= GOOD_DAY_THRESHOLD

def overall_streak(habits: Iterable[Habit], today: date) -> int:
    """Серия удачных дней по всем привычкам (сегодня может быть ещё не завершён)"""
    habits = list(habits)
    cursor = today if _is_good_day(habits, today) else today - timedelta(days=1)
    streak = 0
    while _is_good_day(habits, cursor):
        streak += 1
        cursor -= timedelta(days=1)
    return streak

def best_overall_streak(habits: Iterable[Habit], today: date, days: int = 365) -> int:
    habits = list(habits)
    best = 0
    current = 0
    for day in iter_days(today - timedelta(days=days - 1), today):
        if _is_good_day(habits, day):
            current += 1
            best = max(best, current)
        else:
            current = 0
    return best

def average_mood(entries: Iterable[JournalEntry]) -> Optional[float]:
    moods = [entry.mood for entry in entries if entry.mood is not None]
    if not moods:
        return None
    return sum(moods) / len(moods)
