from __future__ import annotations
from typing import Optional, Sequence
from loguru import logger

from ..config import settings
from ..errors import InvalidInput
from ..models.habit import Profile
from ..store.base import DocumentStore
from ..store.paths import UserPaths


class ProfileService:
    @staticmethod
    async def get_profile(store: DocumentStore, paths: UserPaths) -> Optional[Profile]:
        """None until the user has picked a display name."""
        snapshot = await store.get(paths.profile)
        if not snapshot.exists or not snapshot.get("name"):
            return None
        return Profile(name=snapshot.get("name"))

    @staticmethod
    async def set_name(store: DocumentStore, paths: UserPaths, name: str) -> Profile:
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidInput("Name must not be empty")
        await store.set(paths.profile, {"name": cleaned})
        logger.info("User {} set display name", paths.user_id)
        return Profile(name=cleaned)

    @staticmethod
    def saying_for(tick: int, sayings: Sequence[str] | None = None) -> str:
        """Motivational saying for the given rotation step."""
        sayings = list(sayings if sayings is not None else settings.MOTIVATIONAL_SAYINGS)
        if not sayings:
            return ""
        return sayings[tick % len(sayings)]
