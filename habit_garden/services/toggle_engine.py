from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date

from loguru import logger

from ..errors import BatchCommitFailed, HabitNotFound, StoreUnavailable
from ..models.habit import DailyCompletionSet, Habit, StreakState
from ..store.base import ArrayRemove, ArrayUnion, DocumentStore, WriteBatch
from ..store.paths import UserPaths
from .completion import is_completed, mark_done, mark_undone
from .streak import complete, uncomplete


@dataclass(frozen=True)
class ToggleOutcome:
    """Result of a committed toggle; `day_set` is the day's record as stored afterwards."""
    habit_id: str
    completed: bool
    streak: StreakState
    day_set: DailyCompletionSet


class ToggleEngine:
    """
    Flips a habit between not-done and done for a day.

    The day's completion membership and the habit's streak counters live in
    two documents; both writes go into one batch so a reader never sees one
    without the other. If the commit fails nothing has changed and the
    error propagates to the caller.
    """

    def __init__(self, store: DocumentStore, paths: UserPaths):
        self.store = store
        self.paths = paths

    async def current_habit(self, habit_id: str) -> Habit:
        snapshot = await self.store.get(self.paths.habit(habit_id))
        if not snapshot.exists:
            raise HabitNotFound(habit_id)
        return Habit.from_document(habit_id, snapshot.data)

    def plan(self, habit: Habit, day_set: DailyCompletionSet, today: date) -> tuple[WriteBatch, ToggleOutcome]:
        """Build the batch for toggling `habit` on `today` without committing it."""
        record_path = self.paths.daily_record(today)
        batch = WriteBatch()

        if is_completed(day_set, habit.id):
            streak = uncomplete(habit.streak)
            new_set = mark_undone(day_set, habit.id)
            batch.update(record_path, {"completed": ArrayRemove([habit.id])})
        else:
            streak = complete(habit.streak, today)
            new_set = mark_done(day_set, habit.id)
            batch.set(record_path, {"completed": ArrayUnion([habit.id])}, merge=True)

        batch.update(self.paths.habit(habit.id), streak.to_document())
        outcome = ToggleOutcome(
            habit_id=habit.id,
            completed=not is_completed(day_set, habit.id),
            streak=streak,
            day_set=new_set,
        )
        return batch, outcome

    async def toggle(self, habit_id: str, today: date, day_set: DailyCompletionSet) -> ToggleOutcome:
        """
        Toggle `habit_id` on `today` given the latest completion snapshot for
        that day. Streak fields are re-read from the stored habit right before
        committing so repeated toggles never build on a stale copy.
        """
        if day_set.day != today:
            raise ValueError(f"Completion snapshot is for {day_set.day}, not {today}")

        habit = await self.current_habit(habit_id)
        batch, outcome = self.plan(habit, day_set, today)
        try:
            await self.store.commit(batch)
        except (BatchCommitFailed, StoreUnavailable) as e:
            logger.warning("Toggle of habit {} on {} not applied: {}", habit_id, today, e)
            raise

        # Other habits may have been toggled since the caller took its snapshot
        try:
            stored = await self.store.get(self.paths.daily_record(today))
            outcome = replace(outcome, day_set=DailyCompletionSet.from_document(today, stored.data))
        except StoreUnavailable as e:
            logger.warning("Could not re-read completions for {}: {}", today, e)

        logger.info(
            "Habit {} {} on {} (streak {}, longest {})",
            habit_id,
            "completed" if outcome.completed else "reopened",
            today,
            outcome.streak.current_streak,
            outcome.streak.longest_streak,
        )
        return outcome
