#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Streak Engine
Расчёт серий и процента выполнения по истории привычки

Все функции чистые: производная статистика не хранится, а
пересчитывается по записям о выполнении и заморозкам.

Версия: 1.0.0
Дата: 2026-10-19
"""

from datetime import date, timedelta
from fractions import Fraction
from typing import Any, Dict, Iterable, Optional, Set
from dataclasses import dataclass
import logging

from core.models import Habit, StreakFreeze, ValidationError, DayLike
from utils.datetime_utils import start_of_day, today_local, day_count

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

# ===== HELPERS =====

def _protected_days(habit: Habit, freezes: Iterable[StreakFreeze]) -> Set[date]:
    """Дни, защищённые заморозками (не раньше дня создания привычки)"""
    created = habit.created_day
    return {
        freeze.day for freeze in freezes
        if freeze.applies_to(habit.habit_id) and freeze.day >= created
    }

def _streak_days(habit: Habit, freezes: Iterable[StreakFreeze]) -> Set[date]:
    """Дни, не разрывающие серию: выполненные или защищённые"""
    return set(habit.completed_days) | _protected_days(habit, freezes)

def is_protected(habit: Habit, day: DayLike, freezes: Iterable[StreakFreeze]) -> bool:
    """Защищён ли день заморозкой для данной привычки"""
    return start_of_day(day) in _protected_days(habit, freezes)

# ===== STREAKS =====

def current_streak(habit: Habit, today: Optional[DayLike] = None,
                   freezes: Iterable[StreakFreeze] = ()) -> int:
    """
    Текущая серия: идём назад от today, пока день выполнен или защищён.

    Если today ещё не выполнен, день считается незавершённым и
    серия отсчитывается от вчерашнего дня.
    """
    today = start_of_day(today) if today is not None else today_local()
    counted = _streak_days(habit, freezes)

    cursor = today if today in counted else today - ONE_DAY
    streak = 0
    while cursor in counted:
        streak += 1
        cursor -= ONE_DAY

    return streak

def best_streak(habit: Habit, freezes: Iterable[StreakFreeze] = ()) -> int:
    """Самая длинная серия за всё время (один проход по отсортированным дням)"""
    best = 0
    run = 0
    previous: Optional[date] = None

    for day in sorted(_streak_days(habit, freezes)):
        if previous is not None and day == previous + ONE_DAY:
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day

    return best

# ===== RATES =====

def period_completion_rate(habit: Habit, start: DayLike, end: DayLike) -> Fraction:
    """
    Доля выполненных дней в периоде [start, end] включительно.

    Дни до создания привычки не учитываются ни в числителе, ни в знаменателе.
    """
    start = start_of_day(start)
    end = start_of_day(end)
    if end < start:
        raise ValidationError(f"Конец периода {end} раньше начала {start}")

    effective_start = max(start, habit.created_day)
    if effective_start > end:
        return Fraction(0)

    completed = sum(1 for day in habit.completed_days if effective_start <= day <= end)
    return Fraction(completed, day_count(effective_start, end))

# ===== SUMMARY =====

@dataclass
class HabitStats:
    """Сводная статистика по привычке"""
    habit_id: str
    current_streak: int
    best_streak: int
    total_completions: int
    completion_rate_week: Fraction
    completion_rate_month: Fraction
    completed_today: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habit_id': self.habit_id,
            'current_streak': self.current_streak,
            'best_streak': self.best_streak,
            'total_completions': self.total_completions,
            'completion_rate_week': round(float(self.completion_rate_week) * 100, 1),
            'completion_rate_month': round(float(self.completion_rate_month) * 100, 1),
            'completed_today': self.completed_today
        }

def habit_stats(habit: Habit, today: Optional[DayLike] = None,
                freezes: Iterable[StreakFreeze] = ()) -> HabitStats:
    today = start_of_day(today) if today is not None else today_local()
    freezes = list(freezes)

    return HabitStats(
        habit_id=habit.habit_id,
        current_streak=current_streak(habit, today, freezes),
        best_streak=best_streak(habit, freezes),
        total_completions=habit.total_completions,
        completion_rate_week=period_completion_rate(habit, today - timedelta(days=6), today),
        completion_rate_month=period_completion_rate(habit, today - timedelta(days=29), today),
        completed_today=habit.is_completed_on(today)
    )

__all__ = [
    'is_protected',
    'current_streak',
    'best_streak',
    'period_completion_rate',
    'HabitStats',
    'habit_stats'
]
