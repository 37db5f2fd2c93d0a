from datetime import date

from habit_garden.models.habit import StreakState
from habit_garden.services.streak import complete, uncomplete


def test_consecutive_day_increments():
    state = StreakState(current_streak=3, longest_streak=3, last_completed_date=date(2024, 5, 10))
    result = complete(state, date(2024, 5, 11))
    assert result.current_streak == 4
    assert result.longest_streak == 4
    assert result.last_completed_date == date(2024, 5, 11)


def test_longest_keeps_higher_record():
    state = StreakState(current_streak=3, longest_streak=9, last_completed_date=date(2024, 5, 10))
    assert complete(state, date(2024, 5, 11)).longest_streak == 9


def test_gap_resets_to_one():
    state = StreakState(current_streak=3, longest_streak=3, last_completed_date=date(2024, 5, 10))
    result = complete(state, date(2024, 5, 13))
    assert result.current_streak == 1
    assert result.longest_streak == 3


def test_first_completion_starts_at_one():
    result = complete(StreakState(), date(2024, 5, 13))
    assert result == StreakState(current_streak=1, longest_streak=1, last_completed_date=date(2024, 5, 13))


def test_month_and_year_boundaries_count_as_consecutive():
    end_of_month = StreakState(current_streak=2, longest_streak=2, last_completed_date=date(2024, 2, 29))
    assert complete(end_of_month, date(2024, 3, 1)).current_streak == 3

    new_year = StreakState(current_streak=5, longest_streak=5, last_completed_date=date(2023, 12, 31))
    assert complete(new_year, date(2024, 1, 1)).current_streak == 6


def test_same_day_completion_restarts():
    state = StreakState(current_streak=4, longest_streak=4, last_completed_date=date(2024, 5, 11))
    assert complete(state, date(2024, 5, 11)).current_streak == 1


def test_uncomplete_decrements_and_clears_date():
    state = StreakState(current_streak=4, longest_streak=6, last_completed_date=date(2024, 5, 11))
    result = uncomplete(state)
    assert result.current_streak == 3
    assert result.longest_streak == 6
    assert result.last_completed_date is None


def test_uncomplete_never_goes_negative():
    result = uncomplete(StreakState(current_streak=0, longest_streak=2))
    assert result.current_streak == 0
    assert result.last_completed_date is None


def test_longest_never_decreases_over_toggle_sequence():
    state = StreakState()
    days = [date(2024, 5, d) for d in (1, 2, 3, 3, 3, 4, 6, 7, 7, 8)]
    done = False
    previous_day = None
    highest = 0
    for day in days:
        if day == previous_day and done:
            state = uncomplete(state)
            done = False
        else:
            state = complete(state, day)
            done = True
        previous_day = day
        assert state.longest_streak >= highest
        assert state.longest_streak >= state.current_streak
        highest = state.longest_streak
