from __future__ import annotations
from datetime import date

from ..models.habit import DailyCompletionSet
from ..store.base import DocumentStore
from ..store.paths import UserPaths


def is_completed(day_set: DailyCompletionSet, habit_id: str) -> bool:
    return habit_id in day_set.completed


def mark_done(day_set: DailyCompletionSet, habit_id: str) -> DailyCompletionSet:
    """Set union; marking an already-done habit returns an equal snapshot."""
    return day_set.model_copy(update={"completed": day_set.completed | {habit_id}})


def mark_undone(day_set: DailyCompletionSet, habit_id: str) -> DailyCompletionSet:
    return day_set.model_copy(update={"completed": day_set.completed - {habit_id}})


def with_note(day_set: DailyCompletionSet, habit_id: str, text: str) -> DailyCompletionSet:
    notes = dict(day_set.notes)
    notes[habit_id] = text
    return day_set.model_copy(update={"notes": notes})


async def day_set(store: DocumentStore, paths: UserPaths, day: date) -> DailyCompletionSet:
    """Completion record for `day`; a day nobody touched reads as empty."""
    snapshot = await store.get(paths.daily_record(day))
    return DailyCompletionSet.from_document(day, snapshot.data)
