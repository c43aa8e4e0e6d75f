"""Dashboard and analytics aggregates computed from one habits/records snapshot."""

from __future__ import annotations

from datetime import timedelta
from typing import Dict, List, Sequence

from completion_stats import (
    CompletionIndex,
    best_streak,
    comparison_text,
    completed_count,
    completion_rate,
    current_streak,
    merged_dates,
    period_delta,
)
from config import ALL_TIME_DAYS, HEATMAP_MAX_DAYS
from date_ranges import preceding_range, range_for
from models import WEEK, Habit, color_for, format_day, parse_day

NAME_LIMIT = 15


# =========================
# Progress
# =========================

def progress_status(current, target):
    """
    Given numeric current and target, compute:
      - percent_complete (rounded to 2 decimals)
      - completed (bool)
      - status ("completed", "in_progress" or "not_started")
    """
    if target == 0:
        percent = 100.0 if current >= target else 0.0
    else:
        percent = (current / target) * 100.0
    completed = current >= target

    if completed:
        status = "completed"
    elif current <= 0:
        status = "not_started"
    else:
        status = "in_progress"

    return {
        "current": current,
        "target": target,
        "percent_complete": round(percent, 2),
        "completed": completed,
        "status": status,
    }


def _display_name(name: str) -> str:
    return name if len(name) <= NAME_LIMIT else name[:NAME_LIMIT] + "..."


def habit_breakdown(day_range: Sequence[str], habits: Sequence[Habit], index: CompletionIndex) -> List[dict]:
    """
    One row per habit for the displayed range, best performers first.

    The streak runs back from the range's last day and never leaves the range.
    """
    if not day_range:
        return []
    days = set(day_range)
    first, last = day_range[0], day_range[-1]
    rows = []
    for position, habit in enumerate(habits):
        done = len(index.get(habit.id, set()) & days)
        progress = progress_status(done, len(day_range))
        rows.append(
            {
                "id": habit.id,
                "name": _display_name(habit.name),
                "full_name": habit.name,
                "color": habit.color or color_for(position),
                "completed": done,
                "percent": completion_rate(day_range, [habit], index),
                "streak": current_streak(habit.id, last, index, since=first),
                "status": progress["status"],
            }
        )
    rows.sort(key=lambda row: row["percent"], reverse=True)
    return rows


# =========================
# Time series
# =========================

def _completed_on(day: str, habits: Sequence[Habit], index: CompletionIndex) -> int:
    return sum(1 for h in habits if day in index.get(h.id, ()))


def trend_series(day_range: Sequence[str], habits: Sequence[Habit], index: CompletionIndex) -> List[dict]:
    total = len(habits)
    return [
        {"date": day, "completed": _completed_on(day, habits, index), "total": total}
        for day in day_range
    ]


def bucket_for_week(day: str) -> str:
    """Week bucket key: the Monday that starts the week."""
    d = parse_day(day)
    return format_day(d - timedelta(days=d.weekday()))


def bucket_for_month(day: str) -> str:
    return day[:7]


BUCKETERS = {
    "day": lambda day: day,
    "week": bucket_for_week,
    "month": bucket_for_month,
}


def trend_buckets(
    day_range: Sequence[str],
    habits: Sequence[Habit],
    index: CompletionIndex,
    bucket_type: str = "week",
) -> Dict[str, int]:
    """
    Completions per bucket over the range: bucket_key -> count.

    Every bucket touched by the range is present, empty ones as 0.
    """
    bucketer = BUCKETERS.get(bucket_type)
    if bucketer is None:
        raise ValueError("Invalid bucket_type. Expected 'day', 'week', or 'month'.")
    buckets: Dict[str, int] = {}
    for day in day_range:
        key = bucketer(day)
        buckets[key] = buckets.get(key, 0) + _completed_on(day, habits, index)
    return buckets


def heat_level(intensity: float) -> int:
    if intensity == 0:
        return 0
    if intensity <= 0.25:
        return 1
    if intensity <= 0.5:
        return 2
    if intensity <= 0.75:
        return 3
    return 4


def heatmap(
    day_range: Sequence[str],
    habits: Sequence[Habit],
    index: CompletionIndex,
    max_days: int = HEATMAP_MAX_DAYS,
) -> List[dict]:
    """Per-day share of habits completed, limited to the last max_days days."""
    shown = list(day_range)[-max_days:] if max_days > 0 else []
    total = len(habits)
    cells = []
    for day in shown:
        done = _completed_on(day, habits, index)
        intensity = 0 if total == 0 else done / total
        cells.append(
            {
                "date": day,
                "completed": done,
                "total": total,
                "intensity": intensity,
                "level": heat_level(intensity),
            }
        )
    return cells


# =========================
# Page summaries
# =========================

def analytics_summary(day_range: Sequence[str], habits: Sequence[Habit], index: CompletionIndex, today: str) -> dict:
    """Headline numbers for the analytics page; streaks count a day if any habit was done."""
    done = completed_count(day_range, habits, index)
    any_habit = {"*": merged_dates(index, [h.id for h in habits])}
    return {
        "completion_rate": completion_rate(day_range, habits, index),
        "total_completed": done,
        "total_possible": len(habits) * len(day_range),
        "avg_daily": round(done / len(day_range), 1) if day_range else 0.0,
        "current_streak": current_streak("*", today, any_habit, since=day_range[0] if day_range else None),
        "best_streak": best_streak("*", day_range, any_habit),
    }


def dashboard_summary(
    mode: str,
    anchor: str,
    habits: Sequence[Habit],
    index: CompletionIndex,
    today: str,
    *,
    start: str | None = None,
    end: str | None = None,
    all_time_days: int = ALL_TIME_DAYS,
) -> dict:
    day_range = range_for(mode, anchor, start=start, end=end, all_time_days=all_time_days)
    prior = preceding_range(day_range)
    delta = period_delta(day_range, prior, habits, index)
    this_week = range_for(WEEK, today)
    week_done = completed_count(this_week, habits, index)

    # Row streaks stay inside the range; day_streak is the unbounded badge as of today.
    streak_day = min(today, day_range[-1])
    rows = []
    for position, habit in enumerate(habits):
        rows.append(
            {
                "id": habit.id,
                "name": habit.name,
                "color": habit.color or color_for(position),
                "completed": len(index.get(habit.id, set()) & set(day_range)),
                "current_streak": current_streak(habit.id, streak_day, index, since=day_range[0]),
                "day_streak": current_streak(habit.id, today, index),
                "best_streak": best_streak(habit.id, day_range, index),
            }
        )

    return {
        "mode": mode,
        "anchor": anchor,
        "range_start": day_range[0],
        "range_end": day_range[-1],
        "days": day_range,
        "completion_rate": completion_rate(day_range, habits, index),
        "total_completed": completed_count(day_range, habits, index),
        "total_possible": len(habits) * len(day_range),
        "previous_rate": completion_rate(prior, habits, index),
        "delta": delta,
        "comparison": comparison_text(delta),
        "week_progress": progress_status(week_done, len(habits) * len(this_week)),
        "habits": rows,
    }
