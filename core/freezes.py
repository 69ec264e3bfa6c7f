#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Streak Freeze Allowance
Пул заморозок серий с регенерацией

Правила пула (один общий пул на пользователя):
- при старте пула доступно 0 заморозок;
- каждые 7 полных дней с момента последнего события (старт пула,
  начисление или использование) начисляется одна заморозка;
- использование считается в день траты (created_at), защищённый
  день может быть в прошлом;
- одновременно доступно не более 3 заморозок.

Версия: 1.0.0
Дата: 2026-10-19
"""

from datetime import date, timedelta
from typing import List, Optional, Tuple
import logging

from core.models import StreakFreeze, ValidationError, DayLike
from utils.datetime_utils import local_midnight, now_local, start_of_day, today_local

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class FreezeError(Exception):
    """Базовое исключение для ошибок заморозок"""
    pass

class InsufficientFreezesError(FreezeError):
    """Нет доступных заморозок"""
    pass

# ===== MANAGER =====

class StreakFreezeManager:
    """Менеджер пула заморозок"""

    MAX_FREEZES = 3
    REGEN_DAYS = 7

    def __init__(self, started_on: DayLike):
        self.started_on = start_of_day(started_on)

    def _accrue(self, available: int, anchor: date, until: date) -> Tuple[int, date]:
        """Начислить заморозки за полные окна между anchor и until"""
        if until <= anchor:
            return available, anchor

        earned = (until - anchor).days // self.REGEN_DAYS
        if earned:
            available = min(self.MAX_FREEZES, available + earned)
            anchor = anchor + timedelta(days=earned * self.REGEN_DAYS)
        return available, anchor

    def _replay(self, freezes: List[StreakFreeze], today: date) -> Tuple[int, date]:
        """Воспроизвести историю использований до today включительно"""
        available = 0
        anchor = self.started_on

        # Порядок событий - день использования, а не защищённый день
        events = sorted(f.used_on for f in freezes if f.is_used and f.used_on <= today)
        for day in events:
            available, anchor = self._accrue(available, anchor, day)
            available = max(0, available - 1)
            anchor = max(anchor, day)

        return self._accrue(available, anchor, today)

    def calculate_available_freezes(self, freezes: List[StreakFreeze],
                                    today: Optional[DayLike] = None) -> int:
        """Количество доступных заморозок на сегодня (0..3)"""
        today = start_of_day(today) if today is not None else today_local()
        available, _ = self._replay(freezes, today)
        return available

    def can_use_freeze(self, freezes: List[StreakFreeze], today: Optional[DayLike] = None) -> bool:
        return self.calculate_available_freezes(freezes, today) > 0

    def next_freeze_on(self, freezes: List[StreakFreeze],
                       today: Optional[DayLike] = None) -> Optional[date]:
        """День начисления следующей заморозки (None, если пул заполнен)"""
        today = start_of_day(today) if today is not None else today_local()
        available, anchor = self._replay(freezes, today)
        if available >= self.MAX_FREEZES:
            return None
        return anchor + timedelta(days=self.REGEN_DAYS)

    def use_freeze(self, freezes: List[StreakFreeze], day: DayLike, reason: str = "",
                   habit_id: Optional[str] = None, today: Optional[DayLike] = None) -> StreakFreeze:
        """
        Использовать заморозку для защиты дня.

        Добавляет запись в freezes и возвращает её. Если заморозок нет,
        выбрасывает InsufficientFreezesError, не изменяя freezes.
        """
        used_at = now_local() if today is None else local_midnight(today)
        today = start_of_day(used_at)
        day = start_of_day(day)

        if day > today:
            raise ValidationError(f"Нельзя заморозить будущий день {day}")

        for existing in freezes:
            if existing.covers(habit_id, day):
                raise ValidationError(f"День {day} уже защищён заморозкой")

        available = self.calculate_available_freezes(freezes, today)
        if available <= 0:
            logger.warning(f"No streak freezes available on {today}")
            raise InsufficientFreezesError("Нет доступных заморозок")

        freeze = StreakFreeze.create_used(day, reason=reason, habit_id=habit_id,
                                          created_at=used_at.isoformat())
        freezes.append(freeze)
        logger.info(f"Streak freeze used for {day} (habit: {habit_id or 'all'}), {available - 1} left")
        return freeze

# ===== EXPORT =====

__all__ = [
    'FreezeError',
    'InsufficientFreezesError',
    'StreakFreezeManager'
]
