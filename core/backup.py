#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Backup/Restore Codec
Версионированный снимок всех локальных данных и восстановление из него

Формат снимка (JSON):
    {version, timestamp, habits[], completions[], journalEntries[], streakFreezes[]}

Версия: 1.0.0
Дата: 2026-10-19
"""

import copy
import json
from collections import defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from core.models import Completion, Habit, JournalEntry, StreakFreeze, ValidationError
from utils.datetime_utils import now_local

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1
SUPPORTED_VERSIONS = frozenset({BACKUP_VERSION})

COLLECTION_KEYS = ("habits", "completions", "journalEntries", "streakFreezes")

# ===== EXCEPTIONS =====

class BackupError(Exception):
    """Базовое исключение для ошибок резервного копирования"""
    pass

class MalformedFormatError(BackupError):
    """Данные не являются JSON-документом снимка"""
    pass

class UnsupportedVersionError(BackupError):
    """Версия снимка отсутствует или не поддерживается"""
    pass

class CorruptedDataError(BackupError):
    """Снимок структурно корректен, но внутренне противоречив"""
    pass

class BackupDirectoryError(BackupError):
    """Каталог резервных копий недоступен"""
    pass

class BackupWriteError(BackupError):
    """Не удалось записать резервную копию"""
    pass

# ===== STATE =====

class RestoreMode(Enum):
    """Режим применения снимка"""
    REPLACE = "replace"
    MERGE = "merge"

@dataclass
class DataState:
    """Полный набор локальных данных"""
    habits: List[Habit] = field(default_factory=list)
    journal_entries: List[JournalEntry] = field(default_factory=list)
    streak_freezes: List[StreakFreeze] = field(default_factory=list)

    @property
    def completions(self) -> List[Completion]:
        return [c for habit in self.habits for c in habit.completions]

    def copy(self) -> "DataState":
        return copy.deepcopy(self)

    def counts(self) -> Dict[str, int]:
        return {
            'habits': len(self.habits),
            'completions': len(self.completions),
            'journal_entries': len(self.journal_entries),
            'streak_freezes': len(self.streak_freezes)
        }

@dataclass
class BackupSnapshot:
    """Снимок данных: самостоятельная копия, без ссылок на живые объекты"""
    version: int
    timestamp: str
    habits: List[Habit]
    completions: List[Completion]
    journal_entries: List[JournalEntry]
    streak_freezes: List[StreakFreeze]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "habits": [h.to_dict() for h in self.habits],
            "completions": [c.to_dict() for c in self.completions],
            "journalEntries": [e.to_dict() for e in self.journal_entries],
            "streakFreezes": [f.to_dict() for f in self.streak_freezes]
        }

    def to_json(self, indent: Optional[int] = 2) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent).encode('utf-8')

    def to_state(self) -> DataState:
        by_habit: Dict[str, List[Completion]] = defaultdict(list)
        for completion in self.completions:
            by_habit[completion.habit_id].append(copy.deepcopy(completion))

        habits = []
        for habit in self.habits:
            clone = copy.deepcopy(habit)
            clone.completions = by_habit.get(habit.habit_id, [])
            clone.completions.sort(key=lambda c: c.date)
            habits.append(clone)

        return DataState(
            habits=habits,
            journal_entries=copy.deepcopy(self.journal_entries),
            streak_freezes=copy.deepcopy(self.streak_freezes)
        )

# ===== EXPORT =====

def export_snapshot(habits: Iterable[Habit], completions: Iterable[Completion],
                    journal_entries: Iterable[JournalEntry],
                    freezes: Iterable[StreakFreeze]) -> BackupSnapshot:
    """Создать снимок текущих данных с текущей версией и временем"""
    return BackupSnapshot(
        version=BACKUP_VERSION,
        timestamp=now_local().isoformat(),
        habits=copy.deepcopy(list(habits)),
        completions=copy.deepcopy(list(completions)),
        journal_entries=copy.deepcopy(list(journal_entries)),
        streak_freezes=copy.deepcopy(list(freezes))
    )

def snapshot_state(state: DataState) -> BackupSnapshot:
    return export_snapshot(state.habits, state.completions, state.journal_entries, state.streak_freezes)

# ===== DECODE =====

def _parse_document(raw: Union[bytes, bytearray, str]) -> Dict[str, Any]:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise MalformedFormatError(f"Backup is not valid UTF-8: {e}")

    if not isinstance(raw, str):
        raise MalformedFormatError(f"Unsupported backup payload type: {type(raw).__name__}")

    try:
        document = json.loads(raw)
    except ValueError as e:
        raise MalformedFormatError(f"Backup is not valid JSON: {e}")

    if not isinstance(document, dict):
        raise MalformedFormatError("Backup root must be a JSON object")

    return document

def _check_version(document: Dict[str, Any]) -> int:
    version = document.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise UnsupportedVersionError(f"Backup version is missing or not an integer: {version!r}")
    if version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersionError(f"Unsupported backup version: {version}")
    return version

def _unique(items: Iterable[Any], key: str, kind: str) -> None:
    seen = set()
    for item in items:
        value = getattr(item, key)
        if value in seen:
            raise CorruptedDataError(f"Duplicate {kind} id: {value}")
        seen.add(value)

def _build_snapshot(document: Dict[str, Any], version: int) -> BackupSnapshot:
    timestamp = document.get("timestamp")
    if not isinstance(timestamp, str):
        raise CorruptedDataError("Backup timestamp is missing")

    for key in COLLECTION_KEYS:
        records = document.get(key)
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise CorruptedDataError(f"'{key}' must be a list of objects")

    try:
        completions = [Completion.from_dict(r) for r in document["completions"]]
        _unique(completions, "completion_id", "completion")

        by_habit: Dict[str, List[Completion]] = defaultdict(list)
        for completion in completions:
            by_habit[completion.habit_id].append(completion)

        habits = [Habit.from_dict(r, by_habit.get(r["id"], [])) for r in document["habits"]]
        _unique(habits, "habit_id", "habit")

        habit_ids = {h.habit_id for h in habits}
        dangling = set(by_habit) - habit_ids
        if dangling:
            raise CorruptedDataError(f"Completions reference unknown habits: {sorted(dangling)}")

        entries = [JournalEntry.from_dict(r) for r in document["journalEntries"]]
        _unique(entries, "entry_id", "journal entry")

        freezes = [StreakFreeze.from_dict(r) for r in document["streakFreezes"]]
        _unique(freezes, "freeze_id", "streak freeze")
        for freeze in freezes:
            if freeze.habit_id is not None and freeze.habit_id not in habit_ids:
                raise CorruptedDataError(f"Streak freeze {freeze.freeze_id} references unknown habit")

    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise CorruptedDataError(f"Invalid backup record: {e}")

    return BackupSnapshot(
        version=version,
        timestamp=timestamp,
        habits=habits,
        completions=[c for h in habits for c in h.completions],
        journal_entries=entries,
        streak_freezes=freezes
    )

def decode_snapshot(raw: Union[bytes, bytearray, str]) -> BackupSnapshot:
    """Разобрать и проверить снимок без применения"""
    document = _parse_document(raw)
    version = _check_version(document)
    return _build_snapshot(document, version)

# ===== RESTORE =====

def _merge_by_id(current: list, incoming: list, key: str) -> list:
    merged = {getattr(item, key): item for item in current}
    merged.update({getattr(item, key): item for item in incoming})
    return list(merged.values())

def _merge(current: DataState, incoming: DataState) -> DataState:
    """
    Слияние по id, при совпадении побеждают данные из снимка.

    Локальная привычка, которой нет в снимке, но с тем же названием
    (без учёта регистра), сливается с привычкой из снимка: её выполнения
    и заморозки переходят на id из снимка.
    """
    result = current.copy()

    incoming_ids = {h.habit_id for h in incoming.habits}
    local_by_title = {
        h.title.strip().lower(): h for h in result.habits if h.habit_id not in incoming_ids
    }
    renamed: Dict[str, str] = {}

    habits = {h.habit_id: h for h in result.habits}
    for habit in incoming.habits:
        sources = [habits[habit.habit_id]] if habit.habit_id in habits else []
        same_title = local_by_title.pop(habit.title.strip().lower(), None)
        if same_title is not None:
            del habits[same_title.habit_id]
            renamed[same_title.habit_id] = habit.habit_id
            sources.insert(0, same_title)
            logger.info(f"Merging local habit '{same_title.title}' into {habit.habit_id}")

        if sources:
            by_day = {
                c.date: replace(c, habit_id=habit.habit_id)
                for source in sources for c in source.completions
            }
            by_day.update({c.date: c for c in habit.completions})
            habit.completions = sorted(by_day.values(), key=lambda c: c.date)
        habits[habit.habit_id] = habit

    local_freezes = [
        replace(f, habit_id=renamed[f.habit_id]) if f.habit_id in renamed else f
        for f in result.streak_freezes
    ]

    result.habits = list(habits.values())
    result.journal_entries = _merge_by_id(result.journal_entries, incoming.journal_entries, "entry_id")
    result.streak_freezes = _merge_by_id(local_freezes, incoming.streak_freezes, "freeze_id")
    return result

def restore_from_backup(raw: Union[bytes, bytearray, str], current: Optional[DataState] = None,
                        mode: RestoreMode = RestoreMode.REPLACE) -> DataState:
    """
    Восстановить данные из снимка.

    Возвращает новое состояние; current не изменяется ни при успехе, ни при ошибке.
    Ошибки: MalformedFormatError, UnsupportedVersionError, CorruptedDataError.
    """
    snapshot = decode_snapshot(raw)
    incoming = snapshot.to_state()

    if mode == RestoreMode.MERGE and current is not None:
        state = _merge(current, incoming)
    else:
        state = incoming

    logger.info(f"Snapshot from {snapshot.timestamp} restored ({mode.value}): {state.counts()}")
    return state

# ===== EXPORT =====

__all__ = [
    'BACKUP_VERSION',
    'SUPPORTED_VERSIONS',
    'BackupError',
    'MalformedFormatError',
    'UnsupportedVersionError',
    'CorruptedDataError',
    'BackupDirectoryError',
    'BackupWriteError',
    'RestoreMode',
    'DataState',
    'BackupSnapshot',
    'export_snapshot',
    'snapshot_state',
    'decode_snapshot',
    'restore_from_backup'
]
