#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Completion Ledger
Учёт ежедневных выполнений привычек: не более одной записи на (привычка, день)

Версия: 1.0.0
Дата: 2026-10-19
"""

from fractions import Fraction
from typing import Iterable, List
import logging

from core.models import Habit, DayLike

logger = logging.getLogger(__name__)

def toggle(habit: Habit, day: DayLike) -> bool:
    """Переключить выполнение привычки за день, вернуть новое состояние"""
    completed = habit.toggle_completion(day)
    logger.debug(f"Toggled completion for habit {habit.habit_id} on {day}: {completed}")
    return completed

def is_completed(habit: Habit, day: DayLike) -> bool:
    return habit.is_completed_on(day)

def completed_count(habits: Iterable[Habit], day: DayLike) -> int:
    """Количество привычек, выполненных в указанный день"""
    return sum(1 for habit in habits if habit.is_completed_on(day))

def completion_rate(habits: Iterable[Habit], day: DayLike) -> Fraction:
    """
    Доля привычек, выполненных в указанный день.

    Без привычек - 0, а не деление на ноль.
    """
    habits = list(habits)
    if not habits:
        return Fraction(0)
    return Fraction(completed_count(habits, day), len(habits))

def complete_all(habits: Iterable[Habit], day: DayLike) -> List[Habit]:
    """Отметить все невыполненные привычки выполненными, вернуть изменённые"""
    changed = []
    for habit in habits:
        if not habit.is_completed_on(day):
            habit.set_completion(day, True)
            changed.append(habit)

    if changed:
        logger.info(f"Completed {len(changed)} habits for {day}")
    return changed

__all__ = [
    'toggle',
    'is_completed',
    'completed_count',
    'completion_rate',
    'complete_all'
]
