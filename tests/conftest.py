"""Shared fixtures for the habit analytics tests.

All dates are fixed; nothing here reads the wall clock.
"""

from __future__ import annotations

import pytest

from completion_stats import build_index
from date_ranges import custom_range
from models import CompletionRecord, Habit


@pytest.fixture
def week_of_jan_1():
    """Monday 2024-01-01 through Sunday 2024-01-07."""
    return custom_range("2024-01-01", "2024-01-07")


@pytest.fixture
def completions():
    """Factory: completed records for one habit on every day in start..end."""

    def _make(habit_id: str, start: str, end: str, completed: bool = True):
        return [CompletionRecord(habit_id, day, completed) for day in custom_range(start, end)]

    return _make


@pytest.fixture
def index_for(completions):
    """Factory: completion index from {habit_id: [(start, end), ...]}."""

    def _make(spans: dict):
        records = []
        for habit_id, ranges in spans.items():
            for start, end in ranges:
                records.extend(completions(habit_id, start, end))
        return build_index(records)

    return _make


@pytest.fixture
def two_habits():
    return [Habit("a", "Read"), Habit("b", "Stretch")]
