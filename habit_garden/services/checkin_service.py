from __future__ import annotations
from datetime import date
from typing import Optional
from loguru import logger

from ..errors import InvalidInput
from ..models.habit import CheckIn, parse_timestamp
from ..store.base import DocumentStore, SERVER_TIMESTAMP
from ..store.paths import UserPaths

MOODS = ("Great", "Okay", "Could be better")


class CheckInService:
    """
    One mood check-in per day. The prompt is shown until today's is recorded.
    """

    @staticmethod
    async def get_check_in(store: DocumentStore, paths: UserPaths, day: date) -> Optional[CheckIn]:
        snapshot = await store.get(paths.check_in(day))
        if not snapshot.exists:
            return None
        return CheckIn(
            day=day,
            mood=snapshot.get("mood") or "",
            created_at=parse_timestamp(snapshot.get("createdAt")),
        )

    @staticmethod
    async def needs_check_in(store: DocumentStore, paths: UserPaths, day: date) -> bool:
        return await CheckInService.get_check_in(store, paths, day) is None

    @staticmethod
    async def check_in(store: DocumentStore, paths: UserPaths, day: date, mood: str) -> CheckIn:
        mood = (mood or "").strip()
        if mood not in MOODS:
            raise InvalidInput(f"Unknown mood '{mood}', expected one of {', '.join(MOODS)}")
        await store.set(paths.check_in(day), {"mood": mood, "createdAt": SERVER_TIMESTAMP})
        logger.info("User {} checked in on {} feeling {}", paths.user_id, day, mood)
        return await CheckInService.get_check_in(store, paths, day)
