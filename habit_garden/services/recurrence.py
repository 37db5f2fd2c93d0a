from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from loguru import logger

from ..errors import InvalidRecurrence
from ..utils.dates import weekday_index

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class RecurrenceKind(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


@dataclass(frozen=True)
class Recurrence:
    """
    When a habit is due. `days` only matters for WEEKLY and holds weekday
    indices with 0=Sunday. MONTHLY fires on the 1st of each month.
    """
    kind: RecurrenceKind = RecurrenceKind.DAILY
    days: FrozenSet[int] = frozenset()

    @classmethod
    def daily(cls) -> "Recurrence":
        return cls(RecurrenceKind.DAILY)

    @classmethod
    def weekly(cls, days: Iterable[int]) -> "Recurrence":
        return cls(RecurrenceKind.WEEKLY, frozenset(days))

    @classmethod
    def monthly(cls) -> "Recurrence":
        return cls(RecurrenceKind.MONTHLY)

    def toggle_day(self, index: int) -> "Recurrence":
        """Select or deselect a weekday, as the weekly day picker does."""
        if not 0 <= index <= 6:
            raise InvalidRecurrence(f"Weekday index {index} is outside 0..6")
        days = set(self.days)
        if index in days:
            days.remove(index)
        else:
            days.add(index)
        return Recurrence(RecurrenceKind.WEEKLY, frozenset(days))

    def to_document(self) -> Dict[str, Any]:
        if self.kind is RecurrenceKind.WEEKLY:
            return {"type": self.kind.value, "days": sorted(self.days)}
        return {"type": self.kind.value}

    def describe(self) -> str:
        if self.kind is RecurrenceKind.WEEKLY:
            return ", ".join(DAY_NAMES[d] for d in sorted(self.days)) or "No days"
        return self.kind.value


def parse_recurrence(raw: Union[Recurrence, Mapping[str, Any], None]) -> Recurrence:
    """
    Interpret a stored frequency mapping. A missing rule or a missing type
    means Daily. Raises InvalidRecurrence for anything else we cannot read.
    """
    if isinstance(raw, Recurrence):
        return raw
    if raw is None:
        return Recurrence.daily()
    if not isinstance(raw, Mapping):
        raise InvalidRecurrence(f"Recurrence must be a mapping, got {type(raw).__name__}")

    kind = raw.get("type")
    if not kind:
        return Recurrence.daily()
    try:
        kind = RecurrenceKind(kind)
    except ValueError:
        raise InvalidRecurrence(f"Unknown recurrence type '{kind}'")

    if kind is not RecurrenceKind.WEEKLY:
        return Recurrence(kind)

    days = raw.get("days")
    if days is None:
        days = []
    if isinstance(days, (str, bytes, Mapping)) or not isinstance(days, Iterable):
        raise InvalidRecurrence("Weekly recurrence needs a list of weekday indices")
    parsed = set()
    for d in days:
        if isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6:
            raise InvalidRecurrence(f"Invalid weekday index {d!r}")
        parsed.add(d)
    return Recurrence(kind, frozenset(parsed))


def is_due_on(rule: Union[Recurrence, Mapping[str, Any], None], day: date) -> bool:
    """
    Is a habit with this rule due on `day`? Never raises: a rule we cannot
    interpret, or a weekly rule with no days selected, is simply never due.
    """
    try:
        recurrence = parse_recurrence(rule)
    except InvalidRecurrence as e:
        logger.debug("Treating recurrence {!r} as never due: {}", rule, e)
        return False

    if recurrence.kind is RecurrenceKind.WEEKLY:
        return weekday_index(day) in recurrence.days
    if recurrence.kind is RecurrenceKind.MONTHLY:
        return day.day == 1
    return True


def default_recurrence(raw: Optional[Mapping[str, Any]]) -> Recurrence:
    """Best reading of a stored rule for editing; unreadable rules fall back to Daily."""
    try:
        return parse_recurrence(raw)
    except InvalidRecurrence:
        return Recurrence.daily()
