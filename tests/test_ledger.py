"""Tests for the completion ledger."""

from datetime import datetime
from fractions import Fraction

import pytest

from core import ledger


@pytest.mark.parametrize("initially_done", [False, True])
def test_double_toggle_restores_state(make_habit, day, initially_done):
    habit = make_habit(days=[day(3)] if initially_done else [])

    ledger.toggle(habit, day(3))
    ledger.toggle(habit, day(3))

    assert ledger.is_completed(habit, day(3)) is initially_done


def test_toggle_keeps_one_record_per_day(make_habit, day):
    habit = make_habit()

    assert ledger.toggle(habit, day(3)) is True
    assert ledger.toggle(habit, day(3)) is False
    assert ledger.toggle(habit, day(3)) is True
    assert len(habit.completions) == 1


def test_toggle_accepts_datetimes_on_same_day(make_habit, day):
    habit = make_habit()
    ledger.toggle(habit, datetime(2026, 1, 3, 7, 0))
    ledger.toggle(habit, datetime(2026, 1, 3, 22, 0))

    assert not ledger.is_completed(habit, day(3))
    assert len(habit.completions) == 1


def test_completion_rate_without_habits_is_zero(day):
    assert ledger.completion_rate([], day(1)) == 0


def test_completion_rate_counts_completed_habits(make_habit, day):
    habits = [
        make_habit("Read", days=[day(2)]),
        make_habit("Run", days=[day(2)]),
        make_habit("Write", days=[day(1)]),
    ]

    assert ledger.completion_rate(habits, day(2)) == Fraction(2, 3)
    assert ledger.completed_count(habits, day(1)) == 1


def test_complete_all_only_touches_pending_habits(make_habit, day):
    done = make_habit("Read", days=[day(2)])
    pending = make_habit("Run")

    changed = ledger.complete_all([done, pending], day(2))

    assert changed == [pending]
    assert ledger.completion_rate([done, pending], day(2)) == 1
