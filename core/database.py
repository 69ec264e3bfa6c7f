#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Local Database Manager
Локальное хранилище данных с атомарным сохранением и резервным копированием

Версия: 1.0.0
Дата: 2026-10-19
"""

import dataclasses
import json
import gzip
import threading
from datetime import datetime
from fractions import Fraction
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union, Any
from contextlib import contextmanager
from dataclasses import dataclass
import logging

from core.models import Habit, JournalEntry, StreakFreeze, ValidationError, DayLike
from core.backup import (
    BackupError, BackupDirectoryError, BackupWriteError, MalformedFormatError,
    BackupSnapshot, DataState, RestoreMode, restore_from_backup, snapshot_state
)
from core.freezes import StreakFreezeManager
from core import ledger
from core.streaks import HabitStats, habit_stats
from utils.datetime_utils import now_local, start_of_day, today_local
from utils.validators import is_duplicate_habit_name
from config import config

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class DatabaseError(Exception):
    """Базовое исключение для ошибок базы данных"""
    pass

class HabitNotFoundError(DatabaseError):
    """Привычка не найдена"""
    pass

# ===== HELPER CLASSES =====

@dataclass
class DatabaseStats:
    """Статистика базы данных"""
    total_habits: int = 0
    total_completions: int = 0
    total_journal_entries: int = 0
    database_size_kb: float = 0.0
    last_backup: Optional[str] = None
    last_save: Optional[str] = None
    save_count: int = 0
    load_count: int = 0
    error_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_habits': self.total_habits,
            'total_completions': self.total_completions,
            'total_journal_entries': self.total_journal_entries,
            'database_size_kb': round(self.database_size_kb, 2),
            'last_backup': self.last_backup,
            'last_save': self.last_save,
            'save_count': self.save_count,
            'load_count': self.load_count,
            'error_count': self.error_count
        }

class BackupManager:
    """Менеджер резервных копий"""

    PATTERN = "backup_*.json*"

    def __init__(self, backup_dir: Path, max_backups: int = 7):
        self.backup_dir = Path(backup_dir)
        self.max_backups = max_backups

    def _ensure_directory(self) -> None:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupDirectoryError(f"Cannot create backup directory {self.backup_dir}: {e}")

        if not self.backup_dir.is_dir():
            raise BackupDirectoryError(f"Backup path {self.backup_dir} is not a directory")

    def create_backup(self, payload: bytes, compressed: bool = False) -> Path:
        """Записать резервную копию, вернуть путь к файлу"""
        self._ensure_directory()

        timestamp = now_local().strftime('%Y%m%d_%H%M%S_%f')
        backup_name = f"backup_{timestamp}.json"
        if compressed:
            backup_name += ".gz"
        backup_path = self.backup_dir / backup_name

        try:
            if compressed:
                with gzip.open(backup_path, 'wb') as f_out:
                    f_out.write(payload)
            else:
                with open(backup_path, 'wb') as f_out:
                    f_out.write(payload)
        except OSError as e:
            if backup_path.exists():
                backup_path.unlink()
            raise BackupWriteError(f"Failed to write backup {backup_path}: {e}")

        logger.info(f"Backup created: {backup_path}")
        self._cleanup_old_backups()
        return backup_path

    def read_backup(self, backup_path: Union[Path, str]) -> bytes:
        """Прочитать содержимое резервной копии (.json или .json.gz)"""
        backup_path = Path(backup_path)
        if not backup_path.is_file():
            raise BackupError(f"Backup file {backup_path} does not exist")

        with open(backup_path, 'rb') as f_in:
            payload = f_in.read()

        if backup_path.name.endswith('.gz'):
            try:
                payload = gzip.decompress(payload)
            except (OSError, EOFError) as e:
                raise MalformedFormatError(f"Backup {backup_path.name} is not a valid gzip file: {e}")

        return payload

    def list_backups(self) -> List[Dict[str, Any]]:
        """Получить список всех резервных копий, новые первыми"""
        if not self.backup_dir.is_dir():
            return []

        backups = []
        for backup_file in self.backup_dir.glob(self.PATTERN):
            try:
                stat = backup_file.stat()
                backups.append({
                    'name': backup_file.name,
                    'path': str(backup_file),
                    'size_kb': stat.st_size / 1024,
                    'created': datetime.fromtimestamp(stat.st_mtime).isoformat(),
                    'compressed': backup_file.name.endswith('.gz')
                })
            except OSError as e:
                logger.warning(f"Failed to get info for backup {backup_file}: {e}")

        # Имя содержит метку времени, поэтому сортировка по имени хронологическая
        return sorted(backups, key=lambda x: x['name'], reverse=True)

    def delete_backup(self, backup_path: Union[Path, str]) -> bool:
        backup_path = Path(backup_path)
        if backup_path.exists():
            backup_path.unlink()
            logger.info(f"Removed backup: {backup_path}")
            return True
        return False

    def _cleanup_old_backups(self) -> None:
        """Удалить старые резервные копии сверх лимита"""
        for backup in self.list_backups()[self.max_backups:]:
            try:
                Path(backup['path']).unlink()
                logger.info(f"Removed old backup: {backup['name']}")
            except OSError as e:
                logger.error(f"Failed to remove old backup {backup['name']}: {e}")

class DatabaseManager:
    """
    Менеджер локальных данных.

    Все команды выполняются под одной блокировкой, чтобы фоновое
    резервное копирование не пересекалось с изменениями.
    """

    def __init__(self, data_file: Optional[Path] = None, backup_dir: Optional[Path] = None,
                 max_backups: Optional[int] = None):
        self.data_file = Path(data_file or config.database.path)
        self.backup_manager = BackupManager(
            backup_dir or config.database.backup_dir,
            max_backups or config.database.max_backups
        )

        self.lock = threading.RLock()
        self.stats = DatabaseStats()
        self.state = DataState()
        self.is_initialized = False

        self._initialize()

    def _initialize(self) -> None:
        """Инициализация базы данных"""
        try:
            logger.info("Initializing database manager...")
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            self._load_sync()
            self.is_initialized = True
            logger.info(f"Database manager initialized: {self.state.counts()}")
        except OSError as e:
            logger.error(f"Failed to initialize database: {e}")
            raise DatabaseError(f"Database initialization failed: {e}")

    def _load_sync(self) -> None:
        """Синхронная загрузка данных"""
        if not self.data_file.exists():
            logger.info("Database file does not exist, starting with empty database")
            self.stats.load_count += 1
            return

        with self.lock:
            with open(self.data_file, 'rb') as f:
                raw = f.read()

            try:
                self.state = restore_from_backup(raw)
            except BackupError as e:
                logger.error(f"Database file is corrupted: {e}")
                self.stats.error_count += 1
                self._handle_corruption()
                return

            self.stats.load_count += 1
            self._update_stats()

    def _handle_corruption(self) -> None:
        """Обработка повреждения файла данных"""
        corrupted = self.data_file.with_suffix('.corrupted.json')
        self.data_file.replace(corrupted)
        logger.warning(f"Corrupted database moved to {corrupted}, trying backups...")

        for backup in self.backup_manager.list_backups():
            try:
                self.state = restore_from_backup(self.backup_manager.read_backup(backup['path']))
            except BackupError as e:
                logger.warning(f"Failed to restore from backup {backup['name']}: {e}")
                continue

            logger.info(f"Successfully restored from backup: {backup['name']}")
            self._save_sync()
            return

        logger.warning("Could not restore from any backup, starting with empty database")
        self.state = DataState()

    def _save_sync(self, state: Optional[DataState] = None) -> None:
        """Атомарное сохранение через временный файл"""
        with self.lock:
            payload = snapshot_state(self.state if state is None else state).to_json()
            temp_file = self.data_file.with_suffix('.tmp')

            try:
                with open(temp_file, 'wb') as f:
                    f.write(payload)

                # Проверяем целостность записанного файла
                with open(temp_file, 'rb') as f:
                    json.load(f)

                temp_file.replace(self.data_file)
            except (OSError, ValueError) as e:
                try:
                    if temp_file.is_file():
                        temp_file.unlink()
                except OSError as cleanup_error:
                    logger.warning(f"Could not remove temp file {temp_file}: {cleanup_error}")
                self.stats.error_count += 1
                logger.error(f"Failed to save database: {e}")
                raise DatabaseError(f"Failed to save database: {e}")

            self.stats.save_count += 1
            self.stats.last_save = now_local().isoformat()
            if state is None:
                self._update_stats()

    @contextmanager
    def transaction(self) -> Iterator[DataState]:
        """
        Изменение state с сохранением.

        Если изменение или сохранение не удалось, state возвращается
        к состоянию до изменения.
        """
        with self.lock:
            previous = self.state.copy()
            try:
                yield self.state
                self._save_sync()
            except Exception:
                self.state = previous
                raise

    def _update_stats(self) -> None:
        self.stats.total_habits = len(self.state.habits)
        self.stats.total_completions = sum(h.total_completions for h in self.state.habits)
        self.stats.total_journal_entries = len(self.state.journal_entries)
        if self.data_file.exists():
            self.stats.database_size_kb = self.data_file.stat().st_size / 1024

    # ===== QUERIES =====

    @property
    def habits(self) -> List[Habit]:
        return list(self.state.habits)

    @property
    def journal_entries(self) -> List[JournalEntry]:
        return sorted(self.state.journal_entries, key=lambda e: e.date, reverse=True)

    @property
    def freezes(self) -> List[StreakFreeze]:
        return sorted(self.state.streak_freezes, key=lambda f: f.date, reverse=True)

    @property
    def freeze_manager(self) -> StreakFreezeManager:
        """Пул заморозок стартует в день создания первой привычки"""
        started = [h.created_day for h in self.state.habits]
        return StreakFreezeManager(min(started) if started else today_local())

    def get_habit(self, habit_id: str) -> Habit:
        for habit in self.state.habits:
            if habit.habit_id == habit_id:
                return habit
        raise HabitNotFoundError(f"Habit {habit_id} not found")

    def find_habit(self, query: str) -> Optional[Habit]:
        """Поиск привычки по id или названию (без учёта регистра)"""
        query = query.strip()
        for habit in self.state.habits:
            if habit.habit_id == query:
                return habit
        normalized = query.lower()
        for habit in self.state.habits:
            if habit.title.lower() == normalized:
                return habit
        return None

    def available_freezes(self, today: Optional[DayLike] = None) -> int:
        return self.freeze_manager.calculate_available_freezes(self.state.streak_freezes, today)

    def today_rate(self, day: Optional[DayLike] = None) -> Fraction:
        return ledger.completion_rate(self.state.habits, day or today_local())

    def habit_stats(self, habit_id: str, today: Optional[DayLike] = None) -> HabitStats:
        return habit_stats(self.get_habit(habit_id), today, self.state.streak_freezes)

    # ===== COMMANDS =====

    def add_habit(self, title: str, icon: str = "checkmark", color: str = "blue",
                  category_id: Optional[str] = None, reminder_time: Optional[str] = None) -> Habit:
        """Создать привычку"""
        with self.transaction() as state:
            if is_duplicate_habit_name(title, state.habits):
                raise ValidationError(f"Привычка '{title.strip()}' уже существует")

            habit = Habit.create(title, icon=icon, color=color,
                                 category_id=category_id, reminder_time=reminder_time)
            state.habits.append(habit)

        logger.info(f"Created habit: {habit.title} ({habit.habit_id})")
        return habit

    def update_habit(self, habit_id: str, **changes) -> Habit:
        """Изменить поля привычки (title, icon, color, category_id, reminder_time)"""
        allowed = {'title', 'icon', 'color', 'category_id', 'reminder_time'}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Неизвестные поля: {sorted(unknown)}")

        with self.transaction() as state:
            habit = self.get_habit(habit_id)
            if 'title' in changes and is_duplicate_habit_name(changes['title'], state.habits,
                                                              excluding_id=habit_id):
                raise ValidationError(f"Привычка '{changes['title'].strip()}' уже существует")

            updated = dataclasses.replace(habit, **changes)
            state.habits[state.habits.index(habit)] = updated

        return updated

    def delete_habit(self, habit_id: str) -> bool:
        """Удалить привычку вместе с её записями и заморозками"""
        with self.lock:
            try:
                habit = self.get_habit(habit_id)
            except HabitNotFoundError:
                return False

            with self.transaction() as state:
                state.habits.remove(habit)
                state.streak_freezes = [f for f in state.streak_freezes if f.habit_id != habit_id]

        logger.info(f"Deleted habit {habit.title} with {len(habit.completions)} completions")
        return True

    def toggle_completion(self, habit_id: str, day: Optional[DayLike] = None) -> bool:
        with self.transaction():
            completed = ledger.toggle(self.get_habit(habit_id), day or today_local())
        return completed

    def complete_all(self, day: Optional[DayLike] = None) -> int:
        with self.transaction() as state:
            changed = ledger.complete_all(state.habits, day or today_local())
        return len(changed)

    def add_journal_entry(self, content: str, day: Optional[DayLike] = None,
                          mood: Optional[int] = None, tags: Optional[List[str]] = None) -> JournalEntry:
        with self.transaction() as state:
            entry = JournalEntry.create(content, day or today_local(), mood=mood, tags=tags)
            state.journal_entries.append(entry)
        return entry

    def delete_journal_entry(self, entry_id: str) -> bool:
        with self.lock:
            if not any(e.entry_id == entry_id for e in self.state.journal_entries):
                return False
            with self.transaction() as state:
                state.journal_entries = [e for e in state.journal_entries if e.entry_id != entry_id]
        return True

    def use_freeze(self, day: Optional[DayLike] = None, reason: str = "",
                   habit_id: Optional[str] = None) -> StreakFreeze:
        """Использовать заморозку; InsufficientFreezesError пробрасывается вызывающему"""
        with self.transaction() as state:
            if habit_id is not None:
                self.get_habit(habit_id)
            freeze = self.freeze_manager.use_freeze(
                state.streak_freezes, start_of_day(day) if day else today_local(),
                reason=reason, habit_id=habit_id
            )
        return freeze

    # ===== BACKUP =====

    def snapshot(self) -> BackupSnapshot:
        with self.lock:
            return snapshot_state(self.state)

    def create_backup(self, compressed: Optional[bool] = None) -> Path:
        """Создать резервную копию текущих данных"""
        if compressed is None:
            compressed = config.backup.compressed

        with self.lock:
            payload = self.snapshot().to_json()
            backup_path = self.backup_manager.create_backup(payload, compressed)
            self.stats.last_backup = now_local().isoformat()
        return backup_path

    def restore_backup(self, backup_path: Union[Path, str],
                       mode: RestoreMode = RestoreMode.REPLACE) -> DataState:
        """
        Восстановить из резервной копии.

        При любой ошибке текущие данные остаются без изменений.
        """
        with self.lock:
            raw = self.backup_manager.read_backup(backup_path)
            new_state = restore_from_backup(raw, self.state, mode)

            # Страховочная копия текущих данных перед заменой
            try:
                self.create_backup()
            except BackupError as e:
                logger.warning(f"Safety backup before restore failed: {e}")

            # Сначала файл, потом память: при ошибке записи state не меняется
            self._save_sync(new_state)
            self.state = new_state
            self._update_stats()

        logger.info(f"Successfully restored from backup: {backup_path}")
        return new_state

    def list_backups(self) -> List[Dict[str, Any]]:
        return self.backup_manager.list_backups()

    def get_stats(self) -> Dict[str, Any]:
        """Получить статистику базы данных"""
        with self.lock:
            self._update_stats()
            return {
                "database": self.stats.to_dict(),
                "backups": len(self.backup_manager.list_backups()),
                "available_freezes": self.available_freezes()
            }

    def save(self) -> None:
        """Сохранить изменения, сделанные напрямую в state"""
        self._save_sync()

    def shutdown(self) -> None:
        """Корректное завершение работы"""
        logger.info("Shutting down database manager...")
        with self.lock:
            self._save_sync()

# ===== CONVENIENCE FUNCTIONS =====

def create_database_manager(data_file: Optional[Path] = None) -> DatabaseManager:
    """Создать менеджер базы данных"""
    return DatabaseManager(data_file)

# ===== EXPORT =====

__all__ = [
    'DatabaseError',
    'HabitNotFoundError',
    'DatabaseStats',
    'BackupManager',
    'DatabaseManager',
    'create_database_manager'
]
