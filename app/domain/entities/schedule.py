from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import time
from enum import Enum
from typing import Iterator

MAX_SCHEDULE_ENTRIES = 7


class ScheduleValidationError(ValueError):
    """Raised when a schedule edit would break a ScheduleSet invariant."""
    pass


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @staticmethod
    def parse(value: "Weekday | str") -> "Weekday":
        if isinstance(value, Weekday):
            return value
        normalized = str(value or "").strip().capitalize()
        try:
            return Weekday(normalized)
        except ValueError:
            raise ScheduleValidationError(f"Unknown weekday: {value!r}")


WEEK_ORDER: tuple[Weekday, ...] = tuple(Weekday)


def parse_time(value: time | str, label: str = "time") -> time:
    """Accept a ``datetime.time`` or an ``HH:MM`` / ``HH:MM:SS`` string."""
    if isinstance(value, time):
        return value
    raw = str(value or "").strip()
    if not raw:
        raise ScheduleValidationError(f"{label} is required")
    try:
        return time.fromisoformat(raw)
    except ValueError:
        raise ScheduleValidationError(f"Invalid {label}: {value!r} (expected HH:MM)")


@dataclass(frozen=True)
class ScheduleEntry:
    entry_id: str
    weekday: Weekday
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ScheduleValidationError(
                f"Start time must be before end time for {self.weekday.value}"
            )

    def label(self) -> str:
        return f"{self.weekday.value} {self.start:%H:%M}-{self.end:%H:%M}"


class ScheduleSet:
    """
    Weekly availability windows for one service.

    Entries keep a stable id for their whole life in the set, so edits and
    removals never address an entry by position. Invariants held after every
    operation:
    - at most one entry per weekday
    - at most ``MAX_SCHEDULE_ENTRIES`` entries
    - every entry has ``start < end``
    """

    def __init__(self) -> None:
        self._entries: dict[str, ScheduleEntry] = {}
        self._sequence = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ScheduleEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    @property
    def entries(self) -> tuple[ScheduleEntry, ...]:
        return tuple(self._entries.values())

    def is_empty(self) -> bool:
        return not self._entries

    def get(self, entry_id: str) -> ScheduleEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise ScheduleValidationError(f"Unknown schedule entry: {entry_id}")
        return entry

    def weekdays(self) -> set[Weekday]:
        return {entry.weekday for entry in self._entries.values()}

    def add_entry(self, weekday: Weekday | str, start: time | str, end: time | str) -> ScheduleEntry:
        day = Weekday.parse(weekday)
        if len(self._entries) >= MAX_SCHEDULE_ENTRIES:
            raise ScheduleValidationError(
                f"A schedule can hold at most {MAX_SCHEDULE_ENTRIES} entries"
            )
        if day in self.weekdays():
            raise ScheduleValidationError(f"{day.value} already has a schedule entry")

        self._sequence += 1
        entry = ScheduleEntry(
            entry_id=f"sched-{self._sequence}",
            weekday=day,
            start=parse_time(start, "start time"),
            end=parse_time(end, "end time"),
        )
        self._entries[entry.entry_id] = entry
        return entry

    def update_entry(self, entry_id: str, field: str, value: Weekday | time | str) -> ScheduleEntry:
        current = self.get(entry_id)

        if field == "weekday":
            day = Weekday.parse(value)  # type: ignore[arg-type]
            if day == current.weekday:
                return current
            if any(e.weekday == day for e in self._entries.values() if e.entry_id != entry_id):
                raise ScheduleValidationError(f"{day.value} already has a schedule entry")
            updated = replace(current, weekday=day)
        elif field == "start":
            updated = replace(current, start=parse_time(value, "start time"))  # type: ignore[arg-type]
        elif field == "end":
            updated = replace(current, end=parse_time(value, "end time"))  # type: ignore[arg-type]
        else:
            raise ScheduleValidationError(f"Unknown schedule field: {field!r}")

        self._entries[entry_id] = updated
        return updated

    def remove_entry(self, entry_id: str) -> bool:
        return self._entries.pop(entry_id, None) is not None

    def next_suggested_weekday(self) -> Weekday:
        used = self.weekdays()
        for day in WEEK_ORDER:
            if day not in used:
                return day
        return Weekday.MONDAY
