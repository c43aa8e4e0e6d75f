# models.py
"""Day identifiers, habits and completion records shared by the engine."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

WEEK = "week"
MONTH = "month"
YEAR = "year"
ALL_TIME = "allTime"
CUSTOM = "custom"
VIEW_MODES = (WEEK, MONTH, YEAR, ALL_TIME, CUSTOM)

COLORS = [
    "#6366f1", "#8b5cf6", "#ec4899", "#14b8a6",
    "#f59e0b", "#10b981", "#3b82f6", "#f43f5e",
    "#0ea5e9", "#84cc16", "#d946ef", "#06b6d4",
]

_DAY_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")


class MalformedDate(ValueError):
    """A day identifier is not YYYY-MM-DD or names an impossible date."""


class InvalidRange(ValueError):
    """A custom range ends before it starts."""


# -------- Day identifiers --------
def parse_day(raw) -> date:
    """Parse a 'YYYY-MM-DD' day identifier into a date.

    Only the fixed-width form is accepted; anything else (ISO datetimes,
    compact '20240101', non-strings) raises MalformedDate.
    """
    if not isinstance(raw, str):
        raise MalformedDate(f"Day identifier must be a string, got {type(raw).__name__}.")
    match = _DAY_PATTERN.fullmatch(raw)
    if match is None:
        raise MalformedDate(f"'{raw}' is not in YYYY-MM-DD form.")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise MalformedDate(f"'{raw}' is not a calendar date: {exc}") from exc


def format_day(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def validate_day(raw) -> str:
    """Return the canonical identifier for raw, raising MalformedDate if invalid."""
    return format_day(parse_day(raw))


def today_id(today: date | None = None) -> str:
    """Reference day: the injected date, else the local calendar date."""
    return format_day(today or date.today())


# -------- Habits & completions --------
def color_for(index: int) -> str:
    return COLORS[index % len(COLORS)]


@dataclass(frozen=True)
class Habit:
    id: str
    name: str
    color: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Habit":
        if not isinstance(raw, dict):
            raise ValueError("Habit must be an object with 'id' and 'name'.")
        habit_id = raw.get("id")
        if habit_id is None or str(habit_id).strip() == "":
            raise ValueError("Habit is missing an 'id'.")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ValueError(f"Habit '{habit_id}' has an empty name.")
        color = raw.get("color") or None
        return cls(id=str(habit_id), name=name, color=color)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass(frozen=True)
class CompletionRecord:
    habit_id: str
    date: str
    completed: bool = True

    @classmethod
    def from_dict(cls, raw: dict) -> "CompletionRecord":
        """Build a record from the store's {habitId, date, completed} shape."""
        if not isinstance(raw, dict):
            raise ValueError("Completion record must be an object.")
        habit_id = raw.get("habitId", raw.get("habit_id"))
        if habit_id is None:
            raise ValueError("Completion record is missing 'habitId'.")
        completed = raw.get("completed", False)
        if not isinstance(completed, bool):
            raise ValueError("Completion record 'completed' must be true or false.")
        return cls(
            habit_id=str(habit_id),
            date=validate_day(raw.get("date")),
            completed=completed,
        )
