import asyncio
from datetime import date

import pytest

from habit_garden.errors import ToggleInProgress
from habit_garden.services.habit_service import HabitService
from habit_garden.services.tracker import HabitTracker


@pytest.mark.asyncio
async def test_due_today_follows_habit_changes(store, paths, clock):
    async with HabitTracker(store, paths, clock=clock) as tracker:
        assert tracker.due_today() == []

        daily = await HabitService.create_habit(store, paths, "Walk")
        await HabitService.create_habit(store, paths, "Weekend chores", {"type": "Weekly", "days": [0, 6]})

        assert [h.id for h in tracker.due_today()] == [daily.id]
        assert len(tracker.habits) == 2
        assert {h.name for h in tracker.due_today(date(2024, 5, 18))} == {"Walk", "Weekend chores"}


@pytest.mark.asyncio
async def test_toggle_updates_snapshots(store, paths, clock):
    habit = await HabitService.create_habit(store, paths, "Walk")
    async with HabitTracker(store, paths, clock=clock) as tracker:
        assert not await tracker.is_completed(habit.id)

        outcome = await tracker.toggle(habit.id)
        assert outcome.completed
        assert await tracker.is_completed(habit.id)
        assert tracker.habits[0].current_streak == 1

        await tracker.toggle(habit.id)
        assert not await tracker.is_completed(habit.id)
        assert tracker.habits[0].current_streak == 0
        assert tracker.habits[0].longest_streak == 1


@pytest.mark.asyncio
async def test_is_completed_for_another_day_reads_store(store, paths, clock):
    await store.set(paths.daily_record(date(2024, 5, 1)), {"completed": ["h1"]})
    async with HabitTracker(store, paths, clock=clock) as tracker:
        assert await tracker.is_completed("h1", date(2024, 5, 1))
        assert not await tracker.is_completed("h1")


@pytest.mark.asyncio
async def test_rollover_moves_to_new_day(store, paths, clock):
    habit = await HabitService.create_habit(store, paths, "Walk")
    async with HabitTracker(store, paths, clock=clock) as tracker:
        await tracker.toggle(habit.id)

        clock.today = date(2024, 5, 16)
        outcome = await tracker.toggle(habit.id)

        assert outcome.completed
        assert outcome.streak.current_streak == 2
        assert tracker.day_set.day == date(2024, 5, 16)
        assert await tracker.is_completed(habit.id, date(2024, 5, 15))


@pytest.mark.asyncio
async def test_second_toggle_while_first_in_flight_is_refused(store, paths, clock, monkeypatch):
    habit = await HabitService.create_habit(store, paths, "Walk")
    tracker = await HabitTracker(store, paths, clock=clock).start()
    started = asyncio.Event()
    release = asyncio.Event()
    real_toggle = tracker.engine.toggle

    async def slow_toggle(habit_id, today, day_set):
        started.set()
        await release.wait()
        return await real_toggle(habit_id, today, day_set)

    monkeypatch.setattr(tracker.engine, "toggle", slow_toggle)

    first = asyncio.create_task(tracker.toggle(habit.id))
    await started.wait()
    with pytest.raises(ToggleInProgress):
        await tracker.toggle(habit.id)

    release.set()
    outcome = await first
    assert outcome.completed
    tracker.close()


@pytest.mark.asyncio
async def test_trackers_sharing_in_flight_set_refuse_overlap(store, paths, clock, monkeypatch):
    habit = await HabitService.create_habit(store, paths, "Walk")
    shared = set()
    first_tracker = await HabitTracker(store, paths, clock=clock, in_flight=shared).start()
    second_tracker = await HabitTracker(store, paths, clock=clock, in_flight=shared).start()
    started = asyncio.Event()
    release = asyncio.Event()
    real_toggle = first_tracker.engine.toggle

    async def slow_toggle(habit_id, today, day_set):
        started.set()
        await release.wait()
        return await real_toggle(habit_id, today, day_set)

    monkeypatch.setattr(first_tracker.engine, "toggle", slow_toggle)

    first = asyncio.create_task(first_tracker.toggle(habit.id))
    await started.wait()
    with pytest.raises(ToggleInProgress):
        await second_tracker.toggle(habit.id)

    release.set()
    assert (await first).completed
    assert shared == set()
    first_tracker.close()
    second_tracker.close()


@pytest.mark.asyncio
async def test_close_releases_subscriptions(store, paths, clock):
    tracker = await HabitTracker(store, paths, clock=clock).start()
    tracker.close()

    await HabitService.create_habit(store, paths, "Walk")
    assert tracker.habits == []


@pytest.mark.asyncio
async def test_tracker_delete_uses_its_day(store, paths, clock):
    habit = await HabitService.create_habit(store, paths, "Walk")
    async with HabitTracker(store, paths, clock=clock) as tracker:
        await tracker.toggle(habit.id)
        await tracker.delete_habit(habit.id)
        assert tracker.habits == []
        assert not await tracker.is_completed(habit.id)
