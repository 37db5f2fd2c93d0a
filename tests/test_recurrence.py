from datetime import date, timedelta

import pytest

from habit_garden.errors import InvalidRecurrence
from habit_garden.services.recurrence import (
    Recurrence,
    RecurrenceKind,
    default_recurrence,
    is_due_on,
    parse_recurrence,
)

WEEK = [date(2024, 5, 12) + timedelta(days=i) for i in range(7)]  # Sun..Sat


def test_daily_and_missing_rule_are_always_due():
    for day in WEEK:
        assert is_due_on(None, day) is True
        assert is_due_on({}, day) is True
        assert is_due_on({"type": "Daily"}, day) is True
        assert is_due_on(Recurrence.daily(), day) is True


def test_weekly_uses_sunday_based_indices():
    rule = {"type": "Weekly", "days": [1, 3, 5]}
    due = [day for day in WEEK if is_due_on(rule, day)]
    assert [d.strftime("%a") for d in due] == ["Mon", "Wed", "Fri"]


def test_weekly_sunday_is_index_zero():
    assert is_due_on(Recurrence.weekly([0]), date(2024, 5, 12)) is True
    assert is_due_on(Recurrence.weekly([0]), date(2024, 5, 18)) is False


def test_monthly_only_on_first_day():
    rule = {"type": "Monthly"}
    assert is_due_on(rule, date(2024, 6, 1)) is True
    assert is_due_on(rule, date(2024, 6, 2)) is False
    assert is_due_on(rule, date(2024, 5, 31)) is False


@pytest.mark.parametrize(
    "rule",
    [
        {"type": "Weekly", "days": []},
        {"type": "Weekly"},
        {"type": "Weekly", "days": "135"},
        {"type": "Weekly", "days": [9]},
        {"type": "Weekly", "days": [True]},
        {"type": "Yearly"},
        "Daily",
        42,
    ],
)
def test_unreadable_or_empty_rules_are_never_due(rule):
    day = date(2024, 1, 1)
    for offset in range(40):
        assert is_due_on(rule, day + timedelta(days=offset)) is False


def test_parse_recurrence_rejects_malformed_shapes():
    with pytest.raises(InvalidRecurrence):
        parse_recurrence({"type": "Fortnightly"})
    with pytest.raises(InvalidRecurrence):
        parse_recurrence({"type": "Weekly", "days": [1, 7]})


def test_parse_recurrence_defaults_to_daily():
    assert parse_recurrence(None).kind is RecurrenceKind.DAILY
    assert parse_recurrence({"days": [1]}).kind is RecurrenceKind.DAILY


def test_toggle_day_selects_and_deselects():
    rule = Recurrence.weekly([1]).toggle_day(3).toggle_day(1)
    assert rule.days == frozenset({3})
    assert rule.to_document() == {"type": "Weekly", "days": [3]}
    with pytest.raises(InvalidRecurrence):
        rule.toggle_day(7)


def test_default_recurrence_falls_back_for_editing():
    assert default_recurrence({"type": "Yearly"}) == Recurrence.daily()
    assert default_recurrence({"type": "Monthly"}).describe() == "Monthly"
    assert Recurrence.weekly([5, 1]).describe() == "Mon, Fri"
