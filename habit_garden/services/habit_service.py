from __future__ import annotations
from typing import Any, List, Mapping, Union
from datetime import date
from loguru import logger

from ..errors import BatchCommitFailed, HabitNotFound, InvalidInput, StoreUnavailable
from ..models.habit import Habit
from ..store.base import ArrayRemove, DocumentStore, SERVER_TIMESTAMP
from ..store.paths import UserPaths
from .recurrence import Recurrence, parse_recurrence
from .schedule import sort_habits

RecurrenceInput = Union[Recurrence, Mapping[str, Any], None]


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInput("Habit name must not be empty")
    return cleaned


class HabitService:
    """
    CRUD for habit documents. Streak fields are only ever written here at
    creation; afterwards ToggleEngine owns them.
    """

    @staticmethod
    async def create_habit(
        store: DocumentStore,
        paths: UserPaths,
        name: str,
        recurrence: RecurrenceInput = None,
    ) -> Habit:
        """Create a new habit with zeroed streak counters."""
        rule = parse_recurrence(recurrence)
        habit_id = await store.add(paths.habits, {
            "name": _clean_name(name),
            "frequency": rule.to_document(),
            "createdAt": SERVER_TIMESTAMP,
            "currentStreak": 0,
            "longestStreak": 0,
            "lastCompletedDate": None,
        })
        logger.info("Created habit {} for user {}", habit_id, paths.user_id)
        return await HabitService.get_habit(store, paths, habit_id)

    @staticmethod
    async def get_habit(store: DocumentStore, paths: UserPaths, habit_id: str) -> Habit:
        snapshot = await store.get(paths.habit(habit_id))
        if not snapshot.exists:
            raise HabitNotFound(habit_id)
        return Habit.from_document(habit_id, snapshot.data)

    @staticmethod
    async def list_habits(store: DocumentStore, paths: UserPaths) -> List[Habit]:
        """All of the user's habits in display order."""
        snapshots = await store.list_collection(paths.habits)
        return sort_habits(Habit.from_document(s.id, s.data) for s in snapshots)

    @staticmethod
    async def update_habit(
        store: DocumentStore,
        paths: UserPaths,
        habit_id: str,
        name: str,
        recurrence: RecurrenceInput = None,
    ) -> Habit:
        """Rename a habit and/or change its recurrence. Streaks are untouched."""
        await HabitService.get_habit(store, paths, habit_id)
        rule = parse_recurrence(recurrence)
        await store.update(paths.habit(habit_id), {
            "name": _clean_name(name),
            "frequency": rule.to_document(),
        })
        logger.info("Updated habit {} for user {}", habit_id, paths.user_id)
        return await HabitService.get_habit(store, paths, habit_id)

    @staticmethod
    async def delete_habit(store: DocumentStore, paths: UserPaths, habit_id: str, today: date) -> None:
        """
        Delete a habit and try to drop it from today's completion record.
        The cleanup is best effort: if it fails the deletion still stands.
        """
        await store.delete(paths.habit(habit_id))
        logger.info("Deleted habit {} for user {}", habit_id, paths.user_id)

        try:
            await store.update(paths.daily_record(today), {"completed": ArrayRemove([habit_id])})
        except (BatchCommitFailed, StoreUnavailable) as e:
            logger.warning("Could not remove habit {} from record for {}: {}", habit_id, today, e)
