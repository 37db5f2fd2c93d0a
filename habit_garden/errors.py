class HabitGardenError(Exception):
    """Base class for all errors raised by habit_garden."""


class StoreUnavailable(HabitGardenError):
    """The document store could not be reached. Nothing was written."""


class BatchCommitFailed(HabitGardenError):
    """An atomic batch was rejected. None of its writes were applied."""


class InvalidRecurrence(HabitGardenError, ValueError):
    """A recurrence rule has a shape we cannot interpret."""


class InvalidInput(HabitGardenError, ValueError):
    pass


class HabitNotFound(HabitGardenError, LookupError):
    def __init__(self, habit_id: str):
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class ToggleInProgress(HabitGardenError):
    def __init__(self, habit_id: str):
        super().__init__(f"Toggle for habit {habit_id} is still being committed")
        self.habit_id = habit_id
