"""Tests for model validation and serialization."""

import pytest

from core.models import Completion, Habit, JournalEntry, StreakFreeze, ValidationError


class TestHabit:
    def test_title_is_trimmed(self):
        habit = Habit(habit_id="h1", title="  Read  ", created_at="2026-01-01T08:00:00+00:00")
        assert habit.title == "Read"

    @pytest.mark.parametrize("title", ["", "   ", "x" * 201, None])
    def test_invalid_title_rejected(self, title):
        with pytest.raises(ValidationError):
            Habit(habit_id="h1", title=title)

    @pytest.mark.parametrize("reminder", ["7:00", "24:00", "12:60", "noon"])
    def test_invalid_reminder_rejected(self, reminder):
        with pytest.raises(ValidationError):
            Habit(habit_id="h1", title="Read", reminder_time=reminder)

    def test_created_day_uses_local_zone(self):
        habit = Habit(habit_id="h1", title="Read", created_at="2026-03-01T23:30:00+00:00")
        assert habit.created_day.isoformat() == "2026-03-01"

    def test_duplicate_completion_day_rejected(self):
        completions = [Completion("h1", "2026-01-02"), Completion("h1", "2026-01-02")]
        with pytest.raises(ValidationError):
            Habit(habit_id="h1", title="Read", completions=completions)

    def test_foreign_completion_rejected(self):
        with pytest.raises(ValidationError):
            Habit(habit_id="h1", title="Read", completions=[Completion("h2", "2026-01-02")])

    def test_completions_are_sorted_by_day(self, make_habit):
        habit = make_habit(days=["2026-01-05", "2026-01-02", "2026-01-03"])
        assert [c.date for c in habit.completions] == ["2026-01-02", "2026-01-03", "2026-01-05"]

    def test_add_completion_rejects_existing_day(self, make_habit):
        habit = make_habit(days=["2026-01-02"])
        with pytest.raises(ValidationError):
            habit.add_completion(Completion(habit.habit_id, "2026-01-02"))

    def test_dict_round_trip(self, make_habit):
        habit = make_habit(days=["2026-01-02"])
        data = habit.to_dict()

        assert set(data) == {"id", "title", "icon", "color", "createdAt", "categoryId", "reminderTime"}
        assert Habit.from_dict(data, habit.completions) == habit


class TestCompletion:
    def test_invalid_date_rejected(self):
        with pytest.raises(ValidationError):
            Completion("h1", "2026-02-30")

    def test_non_boolean_completed_rejected(self):
        with pytest.raises(ValidationError):
            Completion("h1", "2026-01-01", completed="yes")

    def test_serialized_keys(self):
        data = Completion("h1", "2026-01-01", completion_id="c1").to_dict()
        assert data == {"id": "c1", "habitId": "h1", "date": "2026-01-01", "completed": True}


class TestJournalEntry:
    def test_empty_content_rejected(self):
        with pytest.raises(ValidationError):
            JournalEntry.create("   ", "2026-01-01")

    @pytest.mark.parametrize("mood", [0, 6, True, "3", 2.5])
    def test_invalid_mood_rejected(self, mood):
        with pytest.raises(ValidationError):
            JournalEntry.create("Good day", "2026-01-01", mood=mood)

    def test_tags_trimmed_and_deduplicated(self):
        entry = JournalEntry.create("Good day", "2026-01-01", mood=4, tags=[" work ", "work", "", "gym"])
        assert entry.tags == ["work", "gym"]

    def test_dict_round_trip(self):
        entry = JournalEntry.create("Good day", "2026-01-01", mood=5, tags=["gym"])
        assert JournalEntry.from_dict(entry.to_dict()) == entry

    @pytest.mark.parametrize("tags", ["work", {"work": 1}, ("work",)])
    def test_tags_must_be_a_list(self, tags):
        with pytest.raises(ValidationError):
            JournalEntry.create("Good day", "2026-01-01", tags=tags)

    def test_missing_tags_read_as_empty(self):
        data = JournalEntry.create("Good day", "2026-01-01").to_dict()
        data["tags"] = None
        assert JournalEntry.from_dict(data).tags == []


class TestStreakFreeze:
    def test_used_freeze_without_habit_covers_everything(self):
        freeze = StreakFreeze.create_used("2026-01-04")
        assert freeze.covers("any-habit", "2026-01-04")
        assert not freeze.covers("any-habit", "2026-01-05")

    def test_habit_scoped_freeze(self):
        freeze = StreakFreeze.create_used("2026-01-04", habit_id="h1")
        assert freeze.covers("h1", "2026-01-04")
        assert not freeze.covers("h2", "2026-01-04")

    def test_unused_freeze_covers_nothing(self):
        freeze = StreakFreeze(freeze_id="f1", date="2026-01-04")
        assert not freeze.covers("h1", "2026-01-04")
        assert not freeze.applies_to(None)

    def test_global_freeze_applies_to_any_scope(self):
        freeze = StreakFreeze.create_used("2026-01-04")
        assert freeze.applies_to("h1") and freeze.applies_to(None)
        assert not StreakFreeze.create_used("2026-01-04", habit_id="h1").applies_to(None)

    def test_serialized_keys(self):
        data = StreakFreeze.create_used("2026-01-04", reason="sick").to_dict()
        assert set(data) == {"id", "date", "reason", "isUsed", "habitId", "createdAt"}
        assert data["isUsed"] is True
