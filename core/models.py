#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Core Data Models
Модели данных с валидацией и типизацией

Версия: 1.0.0
Дата: 2026-10-19
"""

import re
import uuid
from datetime import datetime, date
from typing import Dict, List, Optional, Union, Any
from dataclasses import dataclass, field
import logging

from utils.datetime_utils import now_local, start_of_day, validate_date

logger = logging.getLogger(__name__)

DayLike = Union[date, datetime, str]

_REMINDER_RE = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Ошибка валидации данных"""
    pass

def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Валидация текстовых полей (с обрезкой пробелов)"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} должен быть строкой")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} не может быть пустым" if min_length == 1
                              else f"{field_name} должен содержать минимум {min_length} символов")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} должен содержать максимум {max_length} символов")

    return text

def validate_day(value: DayLike, field_name: str = "date") -> str:
    """Приведение дня к строке YYYY-MM-DD"""
    if isinstance(value, (date, datetime)):
        return start_of_day(value).isoformat()
    if not validate_date(value):
        raise ValidationError(f"Неверный формат даты {field_name}: {value!r}")
    return value

def validate_timestamp(value: str, field_name: str = "timestamp") -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} должен быть строкой ISO-8601")
    try:
        datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Неверный формат времени {field_name}: {value!r}")
    return value

def validate_mood(mood: Optional[int]) -> Optional[int]:
    if mood is None:
        return None
    if isinstance(mood, bool) or not isinstance(mood, int) or not 1 <= mood <= 5:
        raise ValidationError("mood должен быть от 1 до 5")
    return mood

def day_key(day: DayLike) -> str:
    """Ключ календарного дня для поиска записей"""
    return validate_day(day, "day")

def _new_id() -> str:
    return str(uuid.uuid4())

def _now_iso() -> str:
    return now_local().isoformat()

# ===== CORE MODELS =====

@dataclass
class Completion:
    """Запись о выполнении привычки за календарный день"""
    habit_id: str
    date: str  # ISO формат даты (YYYY-MM-DD)
    completed: bool = True
    completion_id: str = field(default_factory=_new_id)

    def __post_init__(self):
        """Валидация после создания объекта"""
        self.date = validate_day(self.date)
        if not isinstance(self.completed, bool):
            raise ValidationError("completed должен быть булевым значением")
        if not isinstance(self.habit_id, str) or not self.habit_id:
            raise ValidationError("habit_id обязателен")

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.completion_id,
            "habitId": self.habit_id,
            "date": self.date,
            "completed": self.completed
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Completion":
        return cls(
            habit_id=data["habitId"],
            date=data["date"],
            completed=data["completed"],
            completion_id=data.get("id") or _new_id()
        )

@dataclass
class Habit:
    """Привычка. Владеет своими записями о выполнении"""
    habit_id: str
    title: str
    icon: str = "checkmark"
    color: str = "blue"
    created_at: str = field(default_factory=_now_iso)
    category_id: Optional[str] = None
    reminder_time: Optional[str] = None  # HH:MM
    completions: List[Completion] = field(default_factory=list)

    def __post_init__(self):
        """Валидация после создания объекта"""
        if not isinstance(self.habit_id, str) or not self.habit_id:
            raise ValidationError("habit_id обязателен")
        self.title = validate_text(self.title, min_length=1, max_length=200, field_name="title")
        self.icon = validate_text(self.icon, min_length=1, max_length=64, field_name="icon")
        self.color = validate_text(self.color, min_length=1, max_length=32, field_name="color")
        self.created_at = validate_timestamp(self.created_at, "created_at")

        if self.reminder_time is not None and not (
                isinstance(self.reminder_time, str) and _REMINDER_RE.fullmatch(self.reminder_time)):
            raise ValidationError(f"reminder_time должен быть в формате HH:MM: {self.reminder_time!r}")

        seen = set()
        for completion in self.completions:
            if completion.habit_id != self.habit_id:
                raise ValidationError(
                    f"Запись {completion.completion_id} принадлежит другой привычке ({completion.habit_id})"
                )
            if completion.date in seen:
                raise ValidationError(f"Повторная запись за {completion.date} для привычки {self.habit_id}")
            seen.add(completion.date)
        self.completions.sort(key=lambda c: c.date)

    # ===== PROPERTIES =====

    @property
    def created_day(self) -> date:
        """Календарный день создания привычки"""
        return start_of_day(self.created_at)

    @property
    def completed_days(self) -> List[date]:
        """Дни с выполнением, по возрастанию"""
        return [c.day for c in self.completions if c.completed]

    @property
    def total_completions(self) -> int:
        return sum(1 for c in self.completions if c.completed)

    # ===== METHODS =====

    def completion_for(self, day: DayLike) -> Optional[Completion]:
        key = day_key(day)
        for completion in self.completions:
            if completion.date == key:
                return completion
        return None

    def is_completed_on(self, day: DayLike) -> bool:
        """Проверка выполнения привычки в определённый день"""
        completion = self.completion_for(day)
        return completion is not None and completion.completed

    def toggle_completion(self, day: DayLike) -> bool:
        """
        Переключить выполнение за день.

        Существующая запись переиспользуется, новая создаётся с completed=True.
        Возвращает новое состояние.
        """
        completion = self.completion_for(day)
        if completion is not None:
            completion.completed = not completion.completed
            return completion.completed

        self._insert(Completion(habit_id=self.habit_id, date=day_key(day), completed=True))
        return True

    def set_completion(self, day: DayLike, completed: bool = True) -> Completion:
        """Установить состояние выполнения за день"""
        completion = self.completion_for(day)
        if completion is not None:
            completion.completed = completed
            return completion

        completion = Completion(habit_id=self.habit_id, date=day_key(day), completed=completed)
        self._insert(completion)
        return completion

    def add_completion(self, completion: Completion) -> None:
        if completion.habit_id != self.habit_id:
            raise ValidationError("Запись о выполнении принадлежит другой привычке")
        if self.completion_for(completion.date) is not None:
            raise ValidationError(f"Запись за {completion.date} уже существует")
        self._insert(completion)

    def _insert(self, completion: Completion) -> None:
        self.completions.append(completion)
        self.completions.sort(key=lambda c: c.date)

    def rename(self, title: str) -> None:
        self.title = validate_text(title, min_length=1, max_length=200, field_name="title")

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация без записей о выполнении (они хранятся отдельным списком)"""
        return {
            "id": self.habit_id,
            "title": self.title,
            "icon": self.icon,
            "color": self.color,
            "createdAt": self.created_at,
            "categoryId": self.category_id,
            "reminderTime": self.reminder_time
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], completions: Optional[List[Completion]] = None) -> "Habit":
        return cls(
            habit_id=data["id"],
            title=data["title"],
            icon=data.get("icon", "checkmark"),
            color=data.get("color", "blue"),
            created_at=data["createdAt"],
            category_id=data.get("categoryId"),
            reminder_time=data.get("reminderTime"),
            completions=list(completions or [])
        )

    @classmethod
    def create(cls, title: str, icon: str = "checkmark", color: str = "blue",
               category_id: Optional[str] = None, reminder_time: Optional[str] = None,
               created_at: Optional[str] = None) -> "Habit":
        """Создание новой привычки"""
        return cls(
            habit_id=_new_id(),
            title=title,
            icon=icon,
            color=color,
            created_at=created_at or _now_iso(),
            category_id=category_id,
            reminder_time=reminder_time
        )

@dataclass
class JournalEntry:
    """Запись в дневнике"""
    entry_id: str
    date: str  # ISO формат даты (YYYY-MM-DD)
    content: str
    mood: Optional[int] = None  # 1-5
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Валидация после создания объекта"""
        self.date = validate_day(self.date)
        self.content = validate_text(self.content, min_length=1, max_length=20000, field_name="content")
        self.mood = validate_mood(self.mood)

        if not isinstance(self.tags, list):
            raise ValidationError("tags должен быть списком строк")
        validated_tags = []
        for tag in self.tags:
            if not isinstance(tag, str):
                raise ValidationError("tags должен быть списком строк")
            tag = tag.strip()
            if tag and tag not in validated_tags:
                validated_tags.append(tag)
        self.tags = validated_tags

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entry_id,
            "date": self.date,
            "content": self.content,
            "mood": self.mood,
            "tags": list(self.tags)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        return cls(
            entry_id=data["id"],
            date=data["date"],
            content=data["content"],
            mood=data.get("mood"),
            tags=[] if data.get("tags") is None else data["tags"]
        )

    @classmethod
    def create(cls, content: str, day: DayLike, mood: Optional[int] = None,
               tags: Optional[List[str]] = None) -> "JournalEntry":
        return cls(
            entry_id=_new_id(),
            date=day_key(day),
            content=content,
            mood=mood,
            tags=[] if tags is None else tags
        )

@dataclass
class StreakFreeze:
    """Заморозка серии: защищённый от разрыва день"""
    freeze_id: str
    date: str  # защищённый день (YYYY-MM-DD)
    reason: str = ""
    is_used: bool = False
    habit_id: Optional[str] = None  # None - защищает все привычки
    created_at: str = field(default_factory=_now_iso)

    def __post_init__(self):
        """Валидация после создания объекта"""
        self.date = validate_day(self.date)
        self.reason = validate_text(self.reason, min_length=0, max_length=500, field_name="reason")
        if not isinstance(self.is_used, bool):
            raise ValidationError("is_used должен быть булевым значением")
        self.created_at = validate_timestamp(self.created_at, "created_at")

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)

    @property
    def used_on(self) -> date:
        """День, когда заморозка была потрачена"""
        return start_of_day(self.created_at)

    def applies_to(self, habit_id: Optional[str]) -> bool:
        """Действует ли потраченная заморозка на привычку"""
        return self.is_used and (self.habit_id is None or self.habit_id == habit_id)

    def covers(self, habit_id: Optional[str], day: DayLike) -> bool:
        """Защищает ли заморозка указанную привычку в указанный день"""
        return self.applies_to(habit_id) and self.date == day_key(day)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.freeze_id,
            "date": self.date,
            "reason": self.reason,
            "isUsed": self.is_used,
            "habitId": self.habit_id,
            "createdAt": self.created_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreakFreeze":
        return cls(
            freeze_id=data["id"],
            date=data["date"],
            reason=data.get("reason") or "",
            is_used=data["isUsed"],
            habit_id=data.get("habitId"),
            created_at=data.get("createdAt") or _now_iso()
        )

    @classmethod
    def create_used(cls, day: DayLike, reason: str = "", habit_id: Optional[str] = None,
                    created_at: Optional[str] = None) -> "StreakFreeze":
        return cls(
            freeze_id=_new_id(),
            date=day_key(day),
            reason=reason,
            is_used=True,
            habit_id=habit_id,
            created_at=created_at or _now_iso()
        )

# ===== EXPORT =====

__all__ = [
    'ValidationError',
    'validate_text',
    'validate_day',
    'validate_mood',
    'day_key',
    'Completion',
    'Habit',
    'JournalEntry',
    'StreakFreeze'
]
