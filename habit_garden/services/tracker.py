from __future__ import annotations
from datetime import date
from typing import Callable, List, Optional, Set

from loguru import logger

from ..config import settings
from ..errors import ToggleInProgress
from ..models.habit import DailyCompletionSet, Habit
from ..store.base import DocumentSnapshot, DocumentStore, Subscription
from ..store.paths import UserPaths
from ..utils.dates import local_today, parse_day_key
from .completion import day_set, is_completed
from .habit_service import HabitService
from .schedule import due_today, sort_habits
from .toggle_engine import ToggleEngine, ToggleOutcome


class HabitTracker:
    """
    One user's session: subscribes to the habit collection and to the
    current day's completion record, keeps the latest snapshots, and feeds
    them to the schedule filter and the toggle engine.

    Only one toggle per habit may be in flight at a time. When the local
    date rolls over the tracker moves its day subscription to the new record.
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: UserPaths,
        clock: Optional[Callable[[], date]] = None,
        in_flight: Optional[Set[str]] = None,
    ):
        self.store = store
        self.paths = paths
        self.engine = ToggleEngine(store, paths)
        self._clock = clock or (lambda: local_today(settings.USER_TIMEZONE))

        self._habits: List[Habit] = []
        self._day: Optional[date] = None
        self._day_set: Optional[DailyCompletionSet] = None
        self._habits_sub: Optional[Subscription] = None
        self._day_sub: Optional[Subscription] = None
        # Pass a shared set so several trackers for one user refuse overlapping toggles
        self._in_flight: Set[str] = in_flight if in_flight is not None else set()

    async def start(self) -> "HabitTracker":
        if self._habits_sub is None:
            self._habits_sub = await self.store.watch_collection(self.paths.habits, self._on_habits)
        await self._follow_day(self._clock())
        return self

    def close(self) -> None:
        for sub in (self._habits_sub, self._day_sub):
            if sub is not None:
                sub.close()
        self._habits_sub = None
        self._day_sub = None
        logger.debug("Tracker for user {} closed", self.paths.user_id)

    async def __aenter__(self) -> "HabitTracker":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def habits(self) -> List[Habit]:
        """Every habit, due today or not, in display order."""
        return sort_habits(self._habits)

    @property
    def day_set(self) -> Optional[DailyCompletionSet]:
        return self._day_set

    async def _on_habits(self, snapshots: List[DocumentSnapshot]) -> None:
        self._habits = [Habit.from_document(s.id, s.data) for s in snapshots]

    async def _on_day_record(self, snapshot: DocumentSnapshot) -> None:
        day = parse_day_key(snapshot.id)
        if day == self._day:
            self._day_set = DailyCompletionSet.from_document(day, snapshot.data)

    async def _follow_day(self, today: date) -> None:
        if self._day == today and self._day_sub is not None:
            return
        if self._day_sub is not None:
            self._day_sub.close()
            logger.info("Day rolled over from {} to {} for user {}", self._day, today, self.paths.user_id)
        self._day = today
        self._day_set = DailyCompletionSet.empty(today)
        self._day_sub = await self.store.watch_document(self.paths.daily_record(today), self._on_day_record)

    def due_today(self, today: Optional[date] = None) -> List[Habit]:
        return due_today(self._habits, today or self._clock())

    async def is_completed(self, habit_id: str, day: Optional[date] = None) -> bool:
        day = day or self._clock()
        if day == self._day and self._day_set is not None:
            return is_completed(self._day_set, habit_id)
        return is_completed(await day_set(self.store, self.paths, day), habit_id)

    async def toggle(self, habit_id: str) -> ToggleOutcome:
        today = self._clock()
        await self._follow_day(today)
        if habit_id in self._in_flight:
            raise ToggleInProgress(habit_id)

        self._in_flight.add(habit_id)
        try:
            return await self.engine.toggle(habit_id, today, self._day_set)
        finally:
            self._in_flight.discard(habit_id)

    async def delete_habit(self, habit_id: str) -> None:
        await HabitService.delete_habit(self.store, self.paths, habit_id, self._clock())
