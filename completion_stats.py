"""Completion index and the statistics derived from it (rates, deltas, streaks)."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, Sequence, Set

from models import CompletionRecord, format_day, parse_day

CompletionIndex = Dict[str, Set[str]]


def _habit_id(habit) -> str:
    """Accept Habit objects, (id, name) pairs or bare ids."""
    if isinstance(habit, str):
        return habit
    if isinstance(habit, tuple):
        return habit[0]
    return habit.id


# =========================
# Index builder
# =========================

def build_index(records: Iterable[CompletionRecord]) -> CompletionIndex:
    """
    Map habit id -> set of completed day identifiers.

    Records are applied in input order, so for a repeated (habit, date)
    pair the last record wins, the same as the store's upsert.
    """
    index: CompletionIndex = {}
    for record in records:
        if record.completed:
            index.setdefault(record.habit_id, set()).add(record.date)
        elif record.habit_id in index:
            index[record.habit_id].discard(record.date)
    return index


def merged_dates(index: CompletionIndex, habit_ids: Iterable[str]) -> Set[str]:
    """Days on which at least one of the habits was completed."""
    merged: Set[str] = set()
    for habit_id in habit_ids:
        merged |= index.get(habit_id, set())
    return merged


# =========================
# Rates
# =========================

def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def completed_count(day_range: Sequence[str], habits: Sequence, index: CompletionIndex) -> int:
    days = set(day_range)
    return sum(len(index.get(_habit_id(h), set()) & days) for h in habits)


def completion_rate(day_range: Sequence[str], habits: Sequence, index: CompletionIndex) -> int:
    """Percent of possible (habit, day) slots completed; 0 when nothing is possible."""
    possible = len(habits) * len(day_range)
    if possible == 0:
        return 0
    return _round_half_up(100 * completed_count(day_range, habits, index), possible)


def period_delta(
    current_range: Sequence[str],
    prior_range: Sequence[str],
    habits: Sequence,
    index: CompletionIndex,
) -> int:
    return completion_rate(current_range, habits, index) - completion_rate(prior_range, habits, index)


def comparison_text(delta: int) -> str:
    if delta > 0:
        return f"↑ {delta}%"
    if delta < 0:
        return f"↓ {abs(delta)}%"
    return "No change"


# =========================
# Streaks
# =========================

def current_streak(habit_id: str, as_of: str, index: CompletionIndex, *, since: str | None = None) -> int:
    """
    Consecutive completed days walking back from as_of.

    When since is given the walk stops at that day, so the streak stays
    inside a displayed range.
    """
    completed = index.get(habit_id)
    if not completed:
        return 0
    streak = 0
    cursor = parse_day(as_of)
    floor = parse_day(since) if since is not None else None
    while format_day(cursor) in completed:
        if floor is not None and cursor < floor:
            break
        streak += 1
        if cursor == date.min:
            break
        cursor -= timedelta(days=1)
    return streak


def longest_run(days: Iterable[str]) -> dict:
    """
    Longest run of consecutive days among the given identifiers.

    Returns {"length_days", "start_date", "end_date"}; on equal lengths the
    earliest run is kept.
    """
    ordered = sorted({parse_day(d) for d in days})
    if not ordered:
        return {"length_days": 0, "start_date": None, "end_date": None}

    best_length, best_start, best_end = 1, ordered[0], ordered[0]
    run_start, run_length = ordered[0], 1

    for prev, curr in zip(ordered, ordered[1:]):
        if curr - prev == timedelta(days=1):
            run_length += 1
        else:
            run_start, run_length = curr, 1
        if run_length > best_length:
            best_length, best_start, best_end = run_length, run_start, curr

    return {
        "length_days": best_length,
        "start_date": format_day(best_start),
        "end_date": format_day(best_end),
    }


def best_streak(habit_id: str, day_range: Sequence[str], index: CompletionIndex) -> int:
    """Longest completed run for the habit, counting only days inside day_range."""
    in_range = index.get(habit_id, set()) & set(day_range)
    return longest_run(in_range)["length_days"]


def streak_summary(habit_id: str, day_range: Sequence[str], as_of: str, index: CompletionIndex) -> Dict[str, int]:
    """Current and best streak, both counted inside day_range."""
    since = day_range[0] if day_range else None
    return {
        "current_streak": current_streak(habit_id, as_of, index, since=since),
        "best_streak": best_streak(habit_id, day_range, index),
    }


__all__ = [
    "CompletionIndex",
    "best_streak",
    "build_index",
    "comparison_text",
    "completed_count",
    "completion_rate",
    "current_streak",
    "longest_run",
    "merged_dates",
    "period_delta",
    "streak_summary",
]
