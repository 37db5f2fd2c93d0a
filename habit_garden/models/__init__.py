from .document import Document
from .habit import Habit, StreakState, DailyCompletionSet, Goal, CheckIn, Profile

__all__ = [
    "Document",
    "Habit",
    "StreakState",
    "DailyCompletionSet",
    "Goal",
    "CheckIn",
    "Profile",
]
