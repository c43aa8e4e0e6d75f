"""Tests for the completion index, rates and streaks."""

from __future__ import annotations

import pytest

from completion_stats import (
    best_streak,
    build_index,
    comparison_text,
    completed_count,
    completion_rate,
    current_streak,
    longest_run,
    merged_dates,
    period_delta,
    streak_summary,
)
from date_ranges import custom_range, range_for
from models import CompletionRecord, Habit


class TestBuildIndex:
    def test_last_record_wins(self):
        records = [
            CompletionRecord("h1", "2024-03-01", True),
            CompletionRecord("h1", "2024-03-01", False),
        ]
        assert "2024-03-01" not in build_index(records).get("h1", set())

    def test_later_completion_restores_the_day(self):
        records = [
            CompletionRecord("h1", "2024-03-01", False),
            CompletionRecord("h1", "2024-03-01", True),
        ]
        assert build_index(records) == {"h1": {"2024-03-01"}}

    def test_duplicates_collapse(self):
        records = [CompletionRecord("h1", "2024-03-01", True)] * 3
        assert build_index(records) == {"h1": {"2024-03-01"}}

    def test_uncompleted_records_only(self):
        assert build_index([CompletionRecord("h1", "2024-03-01", False)]) == {}

    def test_habits_are_kept_apart(self):
        index = build_index(
            [
                CompletionRecord("h1", "2024-03-01", True),
                CompletionRecord("h2", "2024-03-02", True),
                CompletionRecord("h2", "2024-03-01", False),
            ]
        )
        assert index == {"h1": {"2024-03-01"}, "h2": {"2024-03-02"}}

    def test_empty_input(self):
        assert build_index([]) == {}


class TestCompletionRate:
    def test_scenario_a_partial_week(self, week_of_jan_1, index_for):
        index = index_for({"h1": [("2024-01-01", "2024-01-03")]})
        assert completion_rate(week_of_jan_1, [Habit("h1", "Read")], index) == 43

    def test_scenario_d_two_habits(self, two_habits, index_for):
        days = custom_range("2024-01-01", "2024-01-10")
        index = index_for({"a": [("2024-01-01", "2024-01-10")]})
        assert completion_rate(days, two_habits, index) == 50

    def test_halves_round_up(self):
        days = custom_range("2024-01-01", "2024-01-08")
        index = {"h1": {"2024-01-01"}}
        assert completion_rate(days, [Habit("h1", "Read")], index) == 13

    def test_zero_when_nothing_is_possible(self, week_of_jan_1):
        assert completion_rate(week_of_jan_1, [], {"h1": {"2024-01-01"}}) == 0
        assert completion_rate([], [Habit("h1", "Read")], {"h1": {"2024-01-01"}}) == 0

    def test_ignores_days_and_habits_outside_the_view(self, week_of_jan_1):
        index = {"h1": {"2023-12-31", "2024-01-08"}, "ghost": {"2024-01-02"}}
        assert completed_count(week_of_jan_1, [Habit("h1", "Read")], index) == 0
        assert completion_rate(week_of_jan_1, [Habit("h1", "Read")], index) == 0

    def test_accepts_id_name_pairs(self, week_of_jan_1, index_for):
        index = index_for({"h1": [("2024-01-01", "2024-01-07")]})
        assert completion_rate(week_of_jan_1, [("h1", "Read")], index) == 100

    def test_always_a_percentage(self, index_for):
        index = index_for({"a": [("2023-01-01", "2025-12-31")]})
        for mode in ("week", "month", "year", "allTime"):
            rate = completion_rate(range_for(mode, "2024-06-15"), [Habit("a", "Read"), Habit("b", "Run")], index)
            assert 0 <= rate <= 100


class TestPeriodDelta:
    def test_week_over_week(self, index_for):
        habits = [Habit("h1", "Read")]
        index = index_for({"h1": [("2024-01-01", "2024-01-03"), ("2024-01-08", "2024-01-14")]})
        current = range_for("week", "2024-01-10")
        prior = range_for("week", "2024-01-03")
        assert period_delta(current, prior, habits, index) == 57
        assert period_delta(prior, current, habits, index) == -57

    def test_unchanged(self, week_of_jan_1):
        assert period_delta(week_of_jan_1, week_of_jan_1, [Habit("h1", "Read")], {}) == 0

    @pytest.mark.parametrize("delta,text", [(57, "↑ 57%"), (-5, "↓ 5%"), (0, "No change")])
    def test_comparison_text(self, delta, text):
        assert comparison_text(delta) == text


class TestCurrentStreak:
    def test_scenario_a(self, index_for):
        index = index_for({"h1": [("2024-01-01", "2024-01-03")]})
        assert current_streak("h1", "2024-01-03", index) == 3
        assert current_streak("h1", "2024-01-07", index) == 0

    def test_single_day(self):
        assert current_streak("h1", "2024-01-03", {"h1": {"2024-01-03"}}) == 1

    def test_never_completed(self):
        assert current_streak("h1", "2024-01-03", {}) == 0
        assert current_streak("h1", "2024-01-03", {"h1": set()}) == 0

    def test_walks_across_leap_day(self, index_for):
        index = index_for({"h1": [("2024-02-28", "2024-03-01")]})
        assert current_streak("h1", "2024-03-01", index) == 3

    def test_gap_stops_the_walk(self):
        index = {"h1": {"2024-01-01", "2024-01-03", "2024-01-04"}}
        assert current_streak("h1", "2024-01-04", index) == 2

    def test_since_bounds_the_walk(self, index_for):
        index = index_for({"h1": [("2023-12-29", "2024-01-03")]})
        assert current_streak("h1", "2024-01-03", index) == 6
        assert current_streak("h1", "2024-01-03", index, since="2024-01-01") == 3

    def test_grows_as_earlier_days_are_completed(self):
        completed = {"2024-01-10"}
        previous = current_streak("h1", "2024-01-10", {"h1": completed})
        for day in custom_range("2024-01-01", "2024-01-09")[::-1]:
            completed = completed | {day}
            streak = current_streak("h1", "2024-01-10", {"h1": completed})
            assert streak >= previous
            previous = streak
        assert previous == 10


class TestBestStreak:
    def test_longest_run_in_range(self, index_for):
        index = index_for({"h1": [("2024-01-01", "2024-01-03"), ("2024-01-05", "2024-01-09")]})
        assert best_streak("h1", range_for("month", "2024-01-15"), index) == 5

    def test_only_days_in_range_count(self, index_for):
        index = index_for({"h1": [("2024-01-01", "2024-01-03"), ("2024-01-05", "2024-01-09")]})
        assert best_streak("h1", custom_range("2024-01-01", "2024-01-06"), index) == 3

    def test_runs_cross_month_ends(self, index_for):
        index = index_for({"h1": [("2024-01-30", "2024-02-02")]})
        assert best_streak("h1", custom_range("2024-01-01", "2024-02-29"), index) == 4

    def test_no_completions(self, week_of_jan_1):
        assert best_streak("h1", week_of_jan_1, {}) == 0

    def test_at_least_the_current_streak(self, index_for):
        index = index_for({"h1": [("2024-01-02", "2024-01-03"), ("2024-01-05", "2024-01-07")]})
        for mode in ("week", "month", "allTime"):
            days = range_for(mode, "2024-01-07")
            assert best_streak("h1", days, index) >= current_streak("h1", days[-1], index)


class TestLongestRun:
    def test_earliest_run_wins_ties(self):
        run = longest_run(["2024-01-06", "2024-01-01", "2024-01-05", "2024-01-02"])
        assert run == {"length_days": 2, "start_date": "2024-01-01", "end_date": "2024-01-02"}

    def test_later_longer_run(self):
        run = longest_run(["2024-01-01", "2024-01-05", "2024-01-06", "2024-01-07"])
        assert run == {"length_days": 3, "start_date": "2024-01-05", "end_date": "2024-01-07"}

    def test_empty(self):
        assert longest_run([]) == {"length_days": 0, "start_date": None, "end_date": None}


def test_merged_dates_unions_selected_habits():
    index = {"a": {"2024-01-01"}, "b": {"2024-01-02"}, "c": {"2024-01-03"}}
    assert merged_dates(index, ["a", "b", "missing"]) == {"2024-01-01", "2024-01-02"}


def test_streak_summary(week_of_jan_1, index_for):
    index = index_for({"h1": [("2024-01-01", "2024-01-03")]})
    assert streak_summary("h1", week_of_jan_1, "2024-01-03", index) == {
        "current_streak": 3,
        "best_streak": 3,
    }


class TestStreakSummaryWindow:
    def test_run_longer_than_the_window(self, index_for):
        index = index_for({"h": [("2024-03-03", "2024-06-30")]})
        assert len(index["h"]) == 120
        days = range_for("allTime", "2024-06-30")

        summary = streak_summary("h", days, "2024-06-30", index)

        assert summary == {"current_streak": 90, "best_streak": 90}
        assert current_streak("h", "2024-06-30", index) == 120

    @pytest.mark.parametrize("mode", ["week", "month", "year", "allTime"])
    def test_best_is_never_below_current(self, mode, index_for):
        index = index_for({"h": [("2023-01-01", "2024-06-30")]})
        days = range_for(mode, "2024-06-30")
        summary = streak_summary("h", days, days[-1], index)
        assert summary["best_streak"] >= summary["current_streak"]


def test_current_streak_stops_at_the_first_calendar_day():
    index = {"h1": {"0001-01-01", "0001-01-02"}}
    assert current_streak("h1", "0001-01-02", index) == 2
