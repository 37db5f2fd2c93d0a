from __future__ import annotations
from typing import List
from loguru import logger

from ..errors import InvalidInput
from ..models.habit import Goal
from ..store.base import DocumentStore, SERVER_TIMESTAMP
from ..store.paths import UserPaths


class GoalService:
    @staticmethod
    async def add_goal(store: DocumentStore, paths: UserPaths, text: str) -> Goal:
        cleaned = (text or "").strip()
        if not cleaned:
            raise InvalidInput("Goal text must not be empty")
        goal_id = await store.add(paths.goals, {"text": cleaned, "createdAt": SERVER_TIMESTAMP})
        logger.info("Added goal {} for user {}", goal_id, paths.user_id)
        snapshot = await store.get(paths.goal(goal_id))
        return Goal.from_document(goal_id, snapshot.data or {})

    @staticmethod
    async def list_goals(store: DocumentStore, paths: UserPaths) -> List[Goal]:
        snapshots = await store.list_collection(paths.goals)
        goals = [Goal.from_document(s.id, s.data) for s in snapshots]
        return sorted(goals, key=lambda g: (g.created_at.timestamp() if g.created_at else 0.0, g.id))

    @staticmethod
    async def delete_goal(store: DocumentStore, paths: UserPaths, goal_id: str) -> None:
        await store.delete(paths.goal(goal_id))
        logger.info("Deleted goal {} for user {}", goal_id, paths.user_id)
