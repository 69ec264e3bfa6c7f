from typing import Iterable, Optional

from utils.datetime_utils import validate_date

def is_valid_habit_title(title: str) -> bool:
    return isinstance(title, str) and 1 <= len(title.strip()) <= 200

def is_valid_journal_content(content: str) -> bool:
    return isinstance(content, str) and bool(content.strip())

def is_valid_date(date_str: str) -> bool:
    return validate_date(date_str)

def is_valid_mood(mood) -> bool:
    return mood is None or (isinstance(mood, int) and not isinstance(mood, bool) and 1 <= mood <= 5)

def is_duplicate_habit_name(name: str, existing_habits: Iterable, excluding_id: Optional[str] = None) -> bool:
    normalized = name.strip().lower()
    return any(
        habit.title.strip().lower() == normalized
        for habit in existing_habits
        if habit.habit_id != excluding_id
    )
