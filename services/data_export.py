# services/data_export.py

import csv
import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from core.backup import BackupSnapshot
from core.models import Habit, JournalEntry, ValidationError
from core.streaks import best_streak
from utils.datetime_utils import now_local, validate_date

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["date", "habit_id", "habit_title", "completed"]
TRUE_VALUES = {"true", "1", "yes"}

class ExportFormat(Enum):
    JSON = "json"
    MARKDOWN = "md"
    CSV = "csv"

@dataclass
class CSVImportResult:
    imported: int = 0
    skipped: int = 0
    created_habits: List[Habit] = field(default_factory=list)

def render_json(snapshot: BackupSnapshot) -> str:
    return snapshot.to_json().decode("utf-8")

def render_markdown(habits: Iterable[Habit], journal_entries: Iterable[JournalEntry]) -> str:
    habits = list(habits)
    entries = sorted(journal_entries, key=lambda e: e.date, reverse=True)

    lines = [
        "# DailyGrow Export",
        "",
        f"**Exported:** {now_local().strftime('%Y-%m-%d %H:%M')}",
        "",
        "---",
        "",
        f"## Habits ({len(habits)})",
        "",
    ]
    for habit in habits:
        lines += [
            f"### {habit.icon} {habit.title}",
            "",
            f"- Created: {habit.created_day.isoformat()}",
            f"- Total Completions: {habit.total_completions}",
            f"- Best Streak: {best_streak(habit)}",
            "",
        ]

    lines += ["---", "", f"## Journal Entries ({len(entries)})", ""]
    for entry in entries:
        lines += [f"### {entry.date}", ""]
        if entry.mood is not None:
            lines += [f"**Mood:** {'⭐' * entry.mood}", ""]
        if entry.tags:
            lines += [f"**Tags:** {', '.join(entry.tags)}", ""]
        lines += [entry.content, "", "---", ""]

    return "\n".join(lines)

def render_csv(habits: Iterable[Habit]) -> str:
    rows = [
        {
            "date": completion.date,
            "habit_id": habit.habit_id,
            "habit_title": habit.title,
            "completed": "true" if completion.completed else "false",
        }
        for habit in habits
        for completion in habit.completions
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(index=False)

def export_data(snapshot: BackupSnapshot, fmt: ExportFormat, export_dir: Path,
                filename: Optional[str] = None) -> Path:
    """Записать экспорт в export_dir, вернуть путь к файлу"""
    state = snapshot.to_state()
    if fmt == ExportFormat.JSON:
        content = render_json(snapshot)
    elif fmt == ExportFormat.MARKDOWN:
        content = render_markdown(state.habits, state.journal_entries)
    else:
        content = render_csv(state.habits)

    export_dir.mkdir(parents=True, exist_ok=True)
    path = export_dir / (filename or f"dailygrow_export_{now_local().strftime('%Y-%m-%d')}.{fmt.value}")
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)

    logger.info(f"Exported data as {fmt.name} to {path}")
    return path

def import_from_csv(text: str, habits: List[Habit]) -> CSVImportResult:
    """
    Импорт выполнений из CSV вида date,habit_name,completed.

    Строки с неверной датой (в том числе заголовок) пропускаются,
    привычки ищутся по названию без учёта регистра,
    недостающие привычки создаются, существующие дни не перезаписываются.
    """
    result = CSVImportResult()
    by_title = {habit.title.strip().lower(): habit for habit in habits}

    for row in csv.reader(io.StringIO(text)):
        if len(row) < 3:
            continue

        date_str = row[0].strip()
        habit_name = row[1].strip()
        completed = row[2].strip().lower() in TRUE_VALUES

        if not validate_date(date_str):
            continue

        habit = by_title.get(habit_name.lower())
        if habit is None:
            try:
                habit = Habit.create(habit_name)
            except ValidationError as e:
                logger.warning(f"Skipping CSV row with invalid habit name: {e}")
                result.skipped += 1
                continue
            habits.append(habit)
            by_title[habit.title.lower()] = habit
            result.created_habits.append(habit)

        if habit.completion_for(date_str) is not None:
            result.skipped += 1
            continue

        habit.set_completion(date_str, completed)
        result.imported += 1

    logger.info(f"CSV import: {result.imported} imported, {result.skipped} skipped, "
                f"{len(result.created_habits)} habits created")
    return result
