from __future__ import annotations
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import AsyncIterator, Callable, List, Optional, Set

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.responses import JSONResponse, Response
from loguru import logger

from .config import settings
from .db import init_db
from .errors import (
    BatchCommitFailed,
    HabitNotFound,
    InvalidInput,
    InvalidRecurrence,
    StoreUnavailable,
    ToggleInProgress,
)
from .models.habit import Goal
from .schemas import (
    AcceptSuggestionIn,
    CheckInIn,
    CheckInStatus,
    GoalIn,
    HabitIn,
    HabitOut,
    NoteIn,
    NoteOut,
    ProfileIn,
    ProfileOut,
    SuggestionsOut,
    TodayOut,
    ToggleOut,
)
from .services.checkin_service import CheckInService
from .services.goal_service import GoalService
from .services.habit_service import HabitService
from .services.notes_service import NotesService
from .services.profile_service import ProfileService
from .services.recurrence import Recurrence
from .services.suggestion_service import SuggestionService
from .services.tracker import HabitTracker
from .store.base import DocumentStore
from .store.paths import UserPaths
from .store.sql_store import SqlDocumentStore
from .utils.dates import local_today


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # --- startup ---
    logger.remove()
    logger.add(lambda msg: print(msg, end=""), level=settings.LOG_LEVEL)

    await init_db()
    app.state.store = SqlDocumentStore()
    logger.info("Habit Garden started successfully")

    yield

    # --- shutdown ---
    logger.info("Habit Garden shut down")


app = FastAPI(title="Habit Garden", lifespan=lifespan)
# Habit ids with a toggle in progress, per user, shared by every request
app.state.in_flight = defaultdict(set)


# --- dependencies ---

def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_paths(x_user_id: str = Header(..., min_length=1)) -> UserPaths:
    # Identity comes from the auth layer in front of this service.
    return UserPaths(app_id=settings.APP_ID, user_id=x_user_id)


def get_in_flight(request: Request, paths: UserPaths = Depends(get_paths)) -> Set[str]:
    return request.app.state.in_flight[paths.user_id]


def get_clock() -> Callable[[], date]:
    return lambda: local_today(settings.USER_TIMEZONE)


def get_suggestions() -> SuggestionService:
    return SuggestionService()


# --- error mapping ---

def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse({"detail": detail}, status_code=status_code)


@app.exception_handler(HabitNotFound)
async def habit_not_found_handler(request: Request, exc: HabitNotFound):
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return _error(422, str(exc))


@app.exception_handler(InvalidRecurrence)
async def invalid_recurrence_handler(request: Request, exc: InvalidRecurrence):
    return _error(422, str(exc))


@app.exception_handler(ToggleInProgress)
async def toggle_in_progress_handler(request: Request, exc: ToggleInProgress):
    return _error(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(BatchCommitFailed)
async def batch_failed_handler(request: Request, exc: BatchCommitFailed):
    return _error(status.HTTP_409_CONFLICT, "The change could not be saved. Please try again.")


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.warning("Store unavailable for {} {}: {}", request.method, request.url.path, exc)
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Storage is unreachable. Please try again.")


# --- routes ---

@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/habits", response_model=List[HabitOut])
async def list_habits(store: DocumentStore = Depends(get_store), paths: UserPaths = Depends(get_paths)):
    habits = await HabitService.list_habits(store, paths)
    return [HabitOut.from_habit(h) for h in habits]


@app.get("/habits/today", response_model=TodayOut)
async def habits_today(
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    clock: Callable[[], date] = Depends(get_clock),
):
    """Habits due today with their done/not-done state."""
    today = clock()
    async with HabitTracker(store, paths, clock=lambda: today) as tracker:
        habits = [
            HabitOut.from_habit(h, completed=await tracker.is_completed(h.id, today))
            for h in tracker.due_today(today)
        ]
    return TodayOut(day=today, habits=habits)


@app.post("/habits", response_model=HabitOut, status_code=status.HTTP_201_CREATED)
async def create_habit(
    body: HabitIn,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
):
    frequency = body.frequency.to_document() if body.frequency else None
    habit = await HabitService.create_habit(store, paths, body.name, frequency)
    return HabitOut.from_habit(habit)


@app.patch("/habits/{habit_id}", response_model=HabitOut)
async def update_habit(
    habit_id: str,
    body: HabitIn,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
):
    frequency = body.frequency.to_document() if body.frequency else None
    habit = await HabitService.update_habit(store, paths, habit_id, body.name, frequency)
    return HabitOut.from_habit(habit)


@app.delete("/habits/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_habit(
    habit_id: str,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    clock: Callable[[], date] = Depends(get_clock),
):
    await HabitService.delete_habit(store, paths, habit_id, clock())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/habits/{habit_id}/toggle", response_model=ToggleOut)
async def toggle_habit(
    habit_id: str,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    clock: Callable[[], date] = Depends(get_clock),
    in_flight: Set[str] = Depends(get_in_flight),
):
    async with HabitTracker(store, paths, clock=clock, in_flight=in_flight) as tracker:
        outcome = await tracker.toggle(habit_id)
    return ToggleOut(
        habit_id=outcome.habit_id,
        completed=outcome.completed,
        current_streak=outcome.streak.current_streak,
        longest_streak=outcome.streak.longest_streak,
        last_completed_date=outcome.streak.last_completed_date,
    )


@app.get("/habits/{habit_id}/notes", response_model=NoteOut)
async def get_note(
    habit_id: str,
    day: Optional[date] = None,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    clock: Callable[[], date] = Depends(get_clock),
):
    day = day or clock()
    text = await NotesService.get_note(store, paths, habit_id, day)
    return NoteOut(habit_id=habit_id, day=day, text=text)


@app.put("/habits/{habit_id}/notes", response_model=NoteOut)
async def save_note(
    habit_id: str,
    body: NoteIn,
    day: Optional[date] = None,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    clock: Callable[[], date] = Depends(get_clock),
):
    day = day or clock()
    await NotesService.save_note(store, paths, habit_id, day, body.text)
    return NoteOut(habit_id=habit_id, day=day, text=body.text)


@app.get("/goals", response_model=List[Goal])
async def list_goals(store: DocumentStore = Depends(get_store), paths: UserPaths = Depends(get_paths)):
    return await GoalService.list_goals(store, paths)


@app.post("/goals", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def add_goal(body: GoalIn, store: DocumentStore = Depends(get_store), paths: UserPaths = Depends(get_paths)):
    return await GoalService.add_goal(store, paths, body.text)


@app.delete("/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(goal_id: str, store: DocumentStore = Depends(get_store), paths: UserPaths = Depends(get_paths)):
    await GoalService.delete_goal(store, paths, goal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/check-in", response_model=CheckInStatus)
async def check_in_status(
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    clock: Callable[[], date] = Depends(get_clock),
):
    today = clock()
    if await CheckInService.needs_check_in(store, paths, today):
        return CheckInStatus(day=today, needs_check_in=True)
    existing = await CheckInService.get_check_in(store, paths, today)
    return CheckInStatus(day=today, needs_check_in=False, mood=existing.mood if existing else None)


@app.post("/check-in", response_model=CheckInStatus)
async def check_in(
    body: CheckInIn,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    clock: Callable[[], date] = Depends(get_clock),
):
    today = clock()
    record = await CheckInService.check_in(store, paths, today, body.mood)
    return CheckInStatus(day=today, needs_check_in=False, mood=record.mood)


@app.get("/profile", response_model=ProfileOut)
async def get_profile(
    tick: int = 0,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
):
    profile = await ProfileService.get_profile(store, paths)
    return ProfileOut(name=profile.name if profile else None, saying=ProfileService.saying_for(tick))


@app.put("/profile", response_model=ProfileOut)
async def set_profile(body: ProfileIn, store: DocumentStore = Depends(get_store), paths: UserPaths = Depends(get_paths)):
    profile = await ProfileService.set_name(store, paths, body.name)
    return ProfileOut(name=profile.name, saying=ProfileService.saying_for(0))


@app.post("/suggestions", response_model=SuggestionsOut)
async def suggest_habits(
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
    suggestions: SuggestionService = Depends(get_suggestions),
):
    habits = await HabitService.list_habits(store, paths)
    ideas = await suggestions.suggest_habits([h.name for h in habits])
    return SuggestionsOut(suggestions=ideas)


@app.post("/suggestions/accept", response_model=HabitOut, status_code=status.HTTP_201_CREATED)
async def accept_suggestion(
    body: AcceptSuggestionIn,
    store: DocumentStore = Depends(get_store),
    paths: UserPaths = Depends(get_paths),
):
    habit = await HabitService.create_habit(store, paths, body.name, Recurrence.daily())
    return HabitOut.from_habit(habit)
