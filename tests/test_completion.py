from datetime import date

import pytest

from habit_garden.models.habit import DailyCompletionSet
from habit_garden.services.completion import day_set, is_completed, mark_done, mark_undone, with_note
from habit_garden.utils.dates import day_key

DAY = date(2024, 5, 15)


def test_mark_done_is_idempotent():
    empty = DailyCompletionSet.empty(DAY)
    once = mark_done(empty, "h1")
    twice = mark_done(once, "h1")
    assert twice.completed == frozenset({"h1"})
    assert is_completed(twice, "h1")
    assert not is_completed(empty, "h1")


def test_mark_undone_leaves_other_habits():
    record = DailyCompletionSet(day=DAY, completed=frozenset({"h1", "h2"}))
    result = mark_undone(record, "h1")
    assert result.completed == frozenset({"h2"})
    assert record.completed == frozenset({"h1", "h2"})


def test_with_note_returns_new_snapshot():
    record = DailyCompletionSet.empty(DAY)
    noted = with_note(record, "h1", "felt good")
    assert noted.notes == {"h1": "felt good"}
    assert record.notes == {}


def test_day_key_is_iso_date():
    assert day_key(date(2024, 1, 9)) == "2024-01-09"


@pytest.mark.asyncio
async def test_untouched_day_reads_as_empty(store, paths):
    record = await day_set(store, paths, DAY)
    assert record == DailyCompletionSet.empty(DAY)


@pytest.mark.asyncio
async def test_day_set_reads_stored_record(store, paths):
    await store.set(paths.daily_record(DAY), {"completed": ["a", "b"], "notes": {"a": "x"}})
    record = await day_set(store, paths, DAY)
    assert record.completed == frozenset({"a", "b"})
    assert record.notes == {"a": "x"}
