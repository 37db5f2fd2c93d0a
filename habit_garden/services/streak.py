from __future__ import annotations
from datetime import date

from ..models.habit import StreakState
from ..utils.dates import previous_day


def complete(state: StreakState, today: date) -> StreakState:
    """
    Streak after marking the habit done on `today`. The run continues only
    when the last completion was exactly the day before; anything else
    (never completed, a gap, or already today) starts over at 1.
    """
    if state.last_completed_date is not None and state.last_completed_date == previous_day(today):
        new_streak = state.current_streak + 1
    else:
        new_streak = 1
    return StreakState(
        current_streak=new_streak,
        longest_streak=max(state.longest_streak, new_streak),
        last_completed_date=today,
    )


def uncomplete(state: StreakState) -> StreakState:
    """
    Streak after undoing today's mark. The count drops by one but never
    below zero, the last completion date is cleared rather than restored,
    and the longest streak is kept.
    """
    return StreakState(
        current_streak=(state.current_streak or 1) - 1,
        longest_streak=state.longest_streak,
        last_completed_date=None,
    )
