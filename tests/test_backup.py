"""Tests for the backup snapshot codec and restore."""

import json

import pytest

from core.backup import (
    BACKUP_VERSION,
    CorruptedDataError,
    DataState,
    MalformedFormatError,
    RestoreMode,
    UnsupportedVersionError,
    decode_snapshot,
    export_snapshot,
    restore_from_backup,
    snapshot_state,
)
from core.models import JournalEntry, StreakFreeze


@pytest.fixture
def state(make_habit, day):
    read = make_habit("Read", habit_id="h-read", days=[day(1), day(2), day(3)])
    run = make_habit("Run", habit_id="h-run", days=[day(2)])
    run.set_completion(day(3), False)
    return DataState(
        habits=[read, run],
        journal_entries=[JournalEntry.create("Решил все задачи", day(2), mood=4, tags=["work"])],
        streak_freezes=[StreakFreeze.create_used(day(4), reason="sick", habit_id="h-read")],
    )


def _document(state):
    return snapshot_state(state).to_dict()


def test_round_trip_preserves_everything(state):
    raw = snapshot_state(state).to_json()

    assert restore_from_backup(raw) == state


def test_envelope_layout(state):
    document = json.loads(snapshot_state(state).to_json())

    assert document["version"] == BACKUP_VERSION
    assert isinstance(document["timestamp"], str)
    assert len(document["habits"]) == 2
    assert len(document["completions"]) == 5
    assert len(document["journalEntries"]) == 1
    assert len(document["streakFreezes"]) == 1


def test_snapshot_is_independent_of_live_data(state, day):
    snapshot = snapshot_state(state)
    state.habits[0].set_completion(day(10), True)
    state.habits[0].rename("Read more")

    restored = snapshot.to_state()
    assert restored.habits[0].title == "Read"
    assert not restored.habits[0].is_completed_on(day(10))


def test_export_snapshot_from_collections(state):
    snapshot = export_snapshot(state.habits, state.completions, state.journal_entries, state.streak_freezes)

    assert snapshot.version == BACKUP_VERSION
    assert len(snapshot.completions) == len(state.completions)


def test_bom_prefixed_bytes_are_accepted(state):
    raw = b"\xef\xbb\xbf" + snapshot_state(state).to_json()

    assert restore_from_backup(raw) == state


@pytest.mark.parametrize("raw", ["not json", b"\xff\xfe\x00", "[1, 2, 3]", "", "42"])
def test_malformed_input(raw):
    with pytest.raises(MalformedFormatError):
        decode_snapshot(raw)


@pytest.mark.parametrize("version", [999, 0, "1", 1.0, True, None])
def test_unsupported_version(state, version):
    document = _document(state)
    document["version"] = version

    with pytest.raises(UnsupportedVersionError):
        decode_snapshot(json.dumps(document))


def test_missing_version(state):
    document = _document(state)
    del document["version"]

    with pytest.raises(UnsupportedVersionError):
        decode_snapshot(json.dumps(document))


def test_completion_for_unknown_habit(state):
    document = _document(state)
    document["completions"].append({"id": "c-x", "habitId": "ghost", "date": "2026-01-05", "completed": True})

    with pytest.raises(CorruptedDataError):
        decode_snapshot(json.dumps(document))


def test_freeze_for_unknown_habit(state):
    document = _document(state)
    document["streakFreezes"][0]["habitId"] = "ghost"

    with pytest.raises(CorruptedDataError):
        decode_snapshot(json.dumps(document))


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("habits"),
        lambda d: d.update(habits={"id": "h"}),
        lambda d: d.pop("timestamp"),
        lambda d: d["completions"][0].update(date="2026-02-30"),
        lambda d: d["completions"][0].pop("habitId"),
        lambda d: d["completions"].append(dict(d["completions"][0], id="c-copy")),
        lambda d: d["habits"].append(dict(d["habits"][0])),
        lambda d: d["journalEntries"][0].update(mood=9),
        lambda d: d["habits"][0].update(title=""),
        lambda d: d["journalEntries"][0].update(tags="work"),
    ],
    ids=[
        "missing-collection",
        "collection-not-list",
        "missing-timestamp",
        "impossible-date",
        "missing-field",
        "duplicate-day",
        "duplicate-habit-id",
        "mood-out-of-range",
        "empty-title",
        "tags-not-list",
    ],
)
def test_corrupted_records(state, mutate):
    document = _document(state)
    mutate(document)

    with pytest.raises(CorruptedDataError):
        decode_snapshot(json.dumps(document))


def test_failed_restore_leaves_current_untouched(state):
    before = state.copy()

    with pytest.raises(MalformedFormatError):
        restore_from_backup("not json", state, RestoreMode.MERGE)

    assert state == before


def test_replace_returns_backup_contents(state, make_habit):
    current = DataState(habits=[make_habit("Meditate")])
    restored = restore_from_backup(snapshot_state(state).to_json(), current)

    assert [h.title for h in restored.habits] == ["Read", "Run"]
    assert [h.title for h in current.habits] == ["Meditate"]


def test_merge_combines_by_id_and_backup_wins(state, make_habit, day):
    backup = snapshot_state(state).to_json()

    current = state.copy()
    current.habits[0].rename("Read daily")
    current.habits[0].set_completion(day(9), True)
    current.habits.append(make_habit("Meditate", habit_id="h-med"))
    before = current.copy()

    merged = restore_from_backup(backup, current, RestoreMode.MERGE)
    habits = {h.habit_id: h for h in merged.habits}

    assert set(habits) == {"h-read", "h-run", "h-med"}
    assert habits["h-read"].title == "Read"
    assert habits["h-read"].is_completed_on(day(9))
    assert habits["h-read"].is_completed_on(day(1))
    assert len(merged.journal_entries) == 1
    assert current == before


def test_merge_folds_local_habit_with_same_title(state, make_habit, day):
    local = make_habit("READ", habit_id="h-local", days=[day(9)])
    local_freeze = StreakFreeze.create_used(day(5), reason="trip", habit_id="h-local")
    current = DataState(habits=[local], streak_freezes=[local_freeze])

    merged = restore_from_backup(snapshot_state(state).to_json(), current, RestoreMode.MERGE)
    habits = {h.habit_id: h for h in merged.habits}

    assert set(habits) == {"h-read", "h-run"}
    assert habits["h-read"].title == "Read"
    assert habits["h-read"].completed_days == [day(1), day(2), day(3), day(9)]
    assert {c.habit_id for c in habits["h-read"].completions} == {"h-read"}
    freezes = {f.freeze_id: f for f in merged.streak_freezes}
    assert freezes[local_freeze.freeze_id].habit_id == "h-read"
    assert current.habits[0].habit_id == "h-local"
