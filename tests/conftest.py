import os
import sys

# Add the repository root to sys.path so the habit_garden package imports
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from habit_garden.db import init_db
from habit_garden.store.paths import UserPaths
from habit_garden.store.sql_store import SqlDocumentStore


class FakeClock:
    """Stands in for local_today(); tests move it forward by hand."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'habits.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return SqlDocumentStore(session_factory)


@pytest.fixture
def paths():
    return UserPaths(app_id="test-garden", user_id="user-1")


@pytest.fixture
def clock():
    # Wednesday
    return FakeClock(date(2024, 5, 15))


@pytest.fixture
def put_habit(store, paths):
    """Write a habit document directly, bypassing HabitService validation."""
    from habit_garden.store.base import SERVER_TIMESTAMP

    async def _put(
        habit_id,
        name="Read",
        frequency=None,
        current_streak=0,
        longest_streak=0,
        last_completed=None,
    ):
        await store.set(paths.habit(habit_id), {
            "name": name,
            "frequency": frequency,
            "createdAt": SERVER_TIMESTAMP,
            "currentStreak": current_streak,
            "longestStreak": longest_streak,
            "lastCompletedDate": last_completed.isoformat() if last_completed else None,
        })

    return _put
