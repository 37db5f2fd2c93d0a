from __future__ import annotations
from dataclasses import dataclass
from datetime import date

from ..utils.dates import day_key


@dataclass(frozen=True)
class UserPaths:
    """
    Document addresses for one user, all under artifacts/{app_id}/users/{user_id}.
    """
    app_id: str
    user_id: str

    @property
    def root(self) -> str:
        return f"artifacts/{self.app_id}/users/{self.user_id}"

    @property
    def habits(self) -> str:
        return f"{self.root}/habits"

    @property
    def daily_records(self) -> str:
        return f"{self.root}/dailyRecords"

    @property
    def goals(self) -> str:
        return f"{self.root}/goals"

    @property
    def check_ins(self) -> str:
        return f"{self.root}/checkIns"

    @property
    def profile(self) -> str:
        return f"{self.root}/profile/main"

    def habit(self, habit_id: str) -> str:
        return f"{self.habits}/{habit_id}"

    def daily_record(self, day: date) -> str:
        return f"{self.daily_records}/{day_key(day)}"

    def goal(self, goal_id: str) -> str:
        return f"{self.goals}/{goal_id}"

    def check_in(self, day: date) -> str:
        return f"{self.check_ins}/{day_key(day)}"
