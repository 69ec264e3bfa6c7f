#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Command Line Interface
Трекер привычек и дневник с локальным хранением данных

Версия: 1.0.0
Дата: 2026-10-19
"""

import argparse
import logging
import logging.config
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional

from config import config
from core.backup import BackupError, RestoreMode
from core.database import DatabaseError, DatabaseManager, create_database_manager
from core.freezes import FreezeError
from core.models import ValidationError
from services.auto_backup import AutoBackupService
from services.data_export import ExportFormat, export_data, import_from_csv
from services.statistics import StatsPeriod, average_mood, overall_period_rate, overall_streak, period_range
from utils.datetime_utils import parse_day, today_local

logger = logging.getLogger(__name__)

# ===== НАСТРОЙКА ЛОГИРОВАНИЯ =====

def setup_logging():
    """Настройка системы логирования"""
    config.ensure_directories()
    logging.config.dictConfig(config.get_logging_config())
    logger.debug(f"Configuration: {config.to_dict()}")
    return logger

def _day_arg(value: str):
    try:
        return parse_day(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")

def _percent(rate) -> str:
    return f"{float(rate) * 100:.0f}%"

def _require_habit(db: DatabaseManager, query: str):
    habit = db.find_habit(query)
    if habit is None:
        raise ValidationError(f"Привычка '{query}' не найдена")
    return habit

# ===== КОМАНДЫ =====

def cmd_status(db: DatabaseManager, args) -> int:
    day = args.date or today_local()
    print(f"DailyGrow - {day.isoformat()}")
    print(f"Completed today: {_percent(db.today_rate(day))}")
    for habit in db.habits:
        stats = db.habit_stats(habit.habit_id, day)
        mark = "x" if stats.completed_today else " "
        print(f"  [{mark}] {habit.title:<30} streak {stats.current_streak:>3}  best {stats.best_streak:>3}")
    print(f"Streak freezes available: {db.available_freezes(day)} of 3")
    return 0

def cmd_add_habit(db: DatabaseManager, args) -> int:
    habit = db.add_habit(args.title, icon=args.icon, color=args.color, reminder_time=args.reminder)
    print(f"Created habit '{habit.title}' ({habit.habit_id})")
    return 0

def cmd_delete_habit(db: DatabaseManager, args) -> int:
    habit = _require_habit(db, args.habit)
    db.delete_habit(habit.habit_id)
    print(f"Deleted habit '{habit.title}'")
    return 0

def cmd_toggle(db: DatabaseManager, args) -> int:
    habit = _require_habit(db, args.habit)
    completed = db.toggle_completion(habit.habit_id, args.date)
    print(f"'{habit.title}': {'completed' if completed else 'not completed'}")
    return 0

def cmd_complete_all(db: DatabaseManager, args) -> int:
    print(f"Completed {db.complete_all(args.date)} habits")
    return 0

def cmd_stats(db: DatabaseManager, args) -> int:
    today = today_local()
    period = StatsPeriod(args.period)
    start, end = period_range(period, today, db.habits)
    print(f"Period: {start.isoformat()} .. {end.isoformat()}")
    print(f"Completion rate: {_percent(overall_period_rate(db.habits, start, end))}")
    print(f"Overall streak: {overall_streak(db.habits, today)} days")
    mood = average_mood(db.journal_entries)
    print(f"Average mood: {mood:.1f}" if mood is not None else "Average mood: -")
    for habit in db.habits:
        print(f"  {habit.title}: {db.habit_stats(habit.habit_id, today).to_dict()}")
    return 0

def cmd_journal(db: DatabaseManager, args) -> int:
    tags = args.tags.split(",") if args.tags else []
    entry = db.add_journal_entry(args.content, args.date, mood=args.mood, tags=tags)
    print(f"Journal entry saved for {entry.date}")
    return 0

def cmd_freeze(db: DatabaseManager, args) -> int:
    habit_id = _require_habit(db, args.habit).habit_id if args.habit else None
    freeze = db.use_freeze(args.date, reason=args.reason, habit_id=habit_id)
    print(f"Streak protected for {freeze.date}; {db.available_freezes()} freezes left")
    return 0

def cmd_backup(db: DatabaseManager, args) -> int:
    print(f"Backup created: {db.create_backup(compressed=args.compressed)}")
    return 0

def cmd_backups(db: DatabaseManager, args) -> int:
    for backup in db.list_backups():
        print(f"{backup['name']}  {backup['size_kb']:.1f} KB  {backup['created']}")
    return 0

def cmd_restore(db: DatabaseManager, args) -> int:
    mode = RestoreMode.MERGE if args.merge else RestoreMode.REPLACE
    state = db.restore_backup(args.path, mode)
    print(f"Restored ({mode.value}): {state.counts()}")
    return 0

def cmd_export(db: DatabaseManager, args) -> int:
    path = export_data(db.snapshot(), ExportFormat(args.format), config.export_dir)
    print(f"Exported to {path}")
    return 0

def cmd_import_csv(db: DatabaseManager, args) -> int:
    with open(args.path, "r", encoding="utf-8") as f:
        text = f.read()
    with db.transaction() as state:
        result = import_from_csv(text, state.habits)
    print(f"Imported {result.imported} completions, created {len(result.created_habits)} habits")
    return 0

def cmd_daemon(db: DatabaseManager, args) -> int:
    service = AutoBackupService(db)
    stop = []
    signal.signal(signal.SIGTERM, lambda *_: stop.append(True))
    service.start()
    try:
        while not stop:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        service.shutdown()
        db.shutdown()
    return 0

# ===== ПАРСЕР =====

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dailygrow", description="Habit tracker and journal")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("status", help="today's habits and streaks")
    p.add_argument("--date", type=_day_arg)
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("add-habit", help="create a habit")
    p.add_argument("title")
    p.add_argument("--icon", default="checkmark")
    p.add_argument("--color", default="blue")
    p.add_argument("--reminder", help="HH:MM")
    p.set_defaults(func=cmd_add_habit)

    p = sub.add_parser("delete-habit", help="delete a habit and its history")
    p.add_argument("habit")
    p.set_defaults(func=cmd_delete_habit)

    p = sub.add_parser("toggle", help="toggle a day's completion")
    p.add_argument("habit")
    p.add_argument("--date", type=_day_arg)
    p.set_defaults(func=cmd_toggle)

    p = sub.add_parser("complete-all", help="complete every habit for a day")
    p.add_argument("--date", type=_day_arg)
    p.set_defaults(func=cmd_complete_all)

    p = sub.add_parser("stats", help="period statistics")
    p.add_argument("--period", choices=[s.value for s in StatsPeriod], default=StatsPeriod.WEEK.value)
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("journal", help="write a journal entry")
    p.add_argument("content")
    p.add_argument("--mood", type=int, choices=range(1, 6))
    p.add_argument("--tags", help="comma separated")
    p.add_argument("--date", type=_day_arg)
    p.set_defaults(func=cmd_journal)

    p = sub.add_parser("freeze", help="protect a day with a streak freeze")
    p.add_argument("--date", type=_day_arg)
    p.add_argument("--reason", default="")
    p.add_argument("--habit")
    p.set_defaults(func=cmd_freeze)

    p = sub.add_parser("backup", help="create a backup now")
    p.add_argument("--compressed", action="store_true", default=None)
    p.set_defaults(func=cmd_backup)

    p = sub.add_parser("backups", help="list backups")
    p.set_defaults(func=cmd_backups)

    p = sub.add_parser("restore", help="restore from a backup file")
    p.add_argument("path", type=Path)
    p.add_argument("--merge", action="store_true")
    p.set_defaults(func=cmd_restore)

    p = sub.add_parser("export", help="export data")
    p.add_argument("format", choices=[f.value for f in ExportFormat])
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import-csv", help="import completions from CSV")
    p.add_argument("path", type=Path)
    p.set_defaults(func=cmd_import_csv)

    p = sub.add_parser("daemon", help="run scheduled auto-backups")
    p.set_defaults(func=cmd_daemon)

    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        db = create_database_manager()
        if config.backup.auto_backup and args.command != "daemon":
            AutoBackupService(db).check_and_perform_backup()
        return args.func(db, args)
    except (ValidationError, FreezeError, BackupError, DatabaseError, OSError) as e:
        logger.error(f"Command '{args.command}' failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

if __name__ == "__main__":
    sys.exit(main())
