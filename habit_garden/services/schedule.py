from __future__ import annotations
from datetime import date
from typing import Iterable, List, Tuple

from ..models.habit import Habit
from .recurrence import is_due_on


def display_order(habit: Habit) -> Tuple[int, float, str]:
    # A habit whose server timestamp is still pending sorts first; the id
    # breaks ties so equal timestamps never reorder between calls.
    if habit.created_at is None:
        return (0, 0.0, habit.id)
    return (1, habit.created_at.timestamp(), habit.id)


def sort_habits(habits: Iterable[Habit]) -> List[Habit]:
    return sorted(habits, key=display_order)


def due_today(habits: Iterable[Habit], today: date) -> List[Habit]:
    """
    Habits due on `today`, oldest first. Returns a new list each call and
    leaves the input untouched.
    """
    return [h for h in sort_habits(habits) if is_due_on(h.frequency, today)]
