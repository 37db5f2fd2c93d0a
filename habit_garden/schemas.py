from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .models.habit import Habit


class FrequencyIn(BaseModel):
    type: Literal["Daily", "Weekly", "Monthly"] = "Daily"
    days: List[int] = Field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        if self.type == "Weekly":
            return {"type": self.type, "days": sorted(set(self.days))}
        return {"type": self.type}


class HabitIn(BaseModel):
    name: str
    frequency: Optional[FrequencyIn] = None


class HabitOut(BaseModel):
    id: str
    name: str
    frequency: Optional[Dict[str, Any]] = None
    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date] = None
    created_at: Optional[datetime] = None
    completed: Optional[bool] = None

    @classmethod
    def from_habit(cls, habit: Habit, completed: Optional[bool] = None) -> "HabitOut":
        return cls(**habit.model_dump(), completed=completed)


class TodayOut(BaseModel):
    day: date
    habits: List[HabitOut]


class ToggleOut(BaseModel):
    habit_id: str
    completed: bool
    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date] = None


class NoteIn(BaseModel):
    text: str


class NoteOut(BaseModel):
    habit_id: str
    day: date
    text: str


class GoalIn(BaseModel):
    text: str


class CheckInIn(BaseModel):
    mood: str


class CheckInStatus(BaseModel):
    day: date
    needs_check_in: bool
    mood: Optional[str] = None


class ProfileIn(BaseModel):
    name: str


class ProfileOut(BaseModel):
    name: Optional[str] = None
    saying: str


class SuggestionsOut(BaseModel):
    suggestions: List[str]


class AcceptSuggestionIn(BaseModel):
    name: str
