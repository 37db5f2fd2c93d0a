from __future__ import annotations
from datetime import date
from loguru import logger

from ..store.base import DocumentStore
from ..store.paths import UserPaths


class NotesService:
    """Free-text note per habit per day, kept in the day's completion record."""

    @staticmethod
    async def get_note(store: DocumentStore, paths: UserPaths, habit_id: str, day: date) -> str:
        snapshot = await store.get(paths.daily_record(day))
        notes = snapshot.get("notes") or {}
        return notes.get(habit_id, "") if isinstance(notes, dict) else ""

    @staticmethod
    async def save_note(store: DocumentStore, paths: UserPaths, habit_id: str, day: date, text: str) -> None:
        # merge keeps the other habits' notes and the completed list intact
        await store.set(paths.daily_record(day), {"notes": {habit_id: text}}, merge=True)
        logger.info("Saved note for habit {} on {}", habit_id, day)
