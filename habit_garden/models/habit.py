from __future__ import annotations
from typing import Any, Dict, FrozenSet, Mapping, Optional
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


def parse_day(value: Any) -> Optional[date]:
    """Accept a date, a datetime or an ISO string and return the calendar day."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # "2024-05-10" or a full timestamp such as "2024-05-10T08:00:00+00:00"
        return date.fromisoformat(value[:10])
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return None


class StreakState(BaseModel):
    """
    Streak counters carried by a habit document.
    """
    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_completed_date: Optional[date] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastCompletedDate": self.last_completed_date.isoformat() if self.last_completed_date else None,
        }


class Habit(BaseModel):
    """
    Snapshot of a habit document.

    `frequency` is kept exactly as stored (e.g. {"type": "Weekly", "days": [1, 3]})
    so a malformed rule survives a round trip; recurrence.is_due_on interprets it.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    frequency: Optional[Dict[str, Any]] = None
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @property
    def streak(self) -> StreakState:
        return StreakState(
            current_streak=max(self.current_streak, 0),
            longest_streak=max(self.longest_streak, self.current_streak, 0),
            last_completed_date=self.last_completed_date,
        )

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "Habit":
        frequency = data.get("frequency")
        return cls(
            id=doc_id,
            name=data.get("name") or "",
            frequency=dict(frequency) if isinstance(frequency, Mapping) else None,
            current_streak=int(data.get("currentStreak") or 0),
            longest_streak=int(data.get("longestStreak") or 0),
            last_completed_date=parse_day(data.get("lastCompletedDate")),
            created_at=parse_timestamp(data.get("createdAt")),
        )


class DailyCompletionSet(BaseModel):
    """
    Completion record for one calendar day: the habit ids marked done and
    the free-text note left for each habit that day.
    """
    model_config = ConfigDict(frozen=True)

    day: date
    completed: FrozenSet[str] = frozenset()
    notes: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def empty(cls, day: date) -> "DailyCompletionSet":
        return cls(day=day)

    @classmethod
    def from_document(cls, day: date, data: Optional[Mapping[str, Any]]) -> "DailyCompletionSet":
        if not data:
            return cls.empty(day)
        notes = data.get("notes") or {}
        return cls(
            day=day,
            completed=frozenset(str(x) for x in (data.get("completed") or [])),
            notes={str(k): str(v) for k, v in notes.items()} if isinstance(notes, Mapping) else {},
        )


class Goal(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Mapping[str, Any]) -> "Goal":
        return cls(id=doc_id, text=data.get("text") or "", created_at=parse_timestamp(data.get("createdAt")))


class CheckIn(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    mood: str
    created_at: Optional[datetime] = None


class Profile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
