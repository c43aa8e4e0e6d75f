"""Helpers to call the habit analytics microservice over ZeroMQ."""

from __future__ import annotations

import json
from typing import Iterable, List, Optional

import zmq

import config
from logging_config import get_logger
from models import CompletionRecord, Habit

logger = get_logger("clients")

_CONTEXT = zmq.Context.instance()


# ---------- Low-level send helpers ----------
def _make_socket(port: int, host: str, timeout_ms: int):
    socket = _CONTEXT.socket(zmq.REQ)
    socket.setsockopt(zmq.RCVTIMEO, timeout_ms)
    socket.setsockopt(zmq.SNDTIMEO, timeout_ms)
    socket.setsockopt(zmq.LINGER, 0)
    socket.connect(f"tcp://{host}:{port}")
    return socket


def _send_bytes(
    payload: dict,
    port: int = config.ANALYTICS_PORT,
    host: str = config.ANALYTICS_HOST,
    timeout_ms: int = config.TIMEOUT_MS,
):
    socket = _make_socket(port, host, timeout_ms)
    try:
        socket.send_string(json.dumps(payload))
        raw = socket.recv()
        return json.loads(raw.decode("utf-8")), None
    except zmq.error.Again:
        logger.warning("Timed out contacting analytics service on port %s", port)
        return None, f"Timed out contacting service on port {port}."
    except (zmq.ZMQError, ValueError) as exc:
        logger.error("Analytics service error on port %s: %s", port, exc)
        return None, f"Service error on port {port}: {exc}"
    finally:
        socket.close()


def _request(payload: dict, **transport):
    """Send one request and unwrap the service envelope into (result, error)."""
    response, error = _send_bytes(payload, **transport)
    if error:
        return None, error
    if response.get("status") != "ok":
        return None, response.get("error", "Unknown analytics error.")
    return response.get("result", {}), None


# ---------- Data shaping helpers ----------
def _snapshot_payload(habits: Iterable[Habit], records: Iterable[CompletionRecord]) -> dict:
    return {
        "habits": [h.to_dict() for h in habits],
        "records": [
            {"habitId": r.habit_id, "date": r.date, "completed": r.completed}
            for r in records
        ],
    }


def _view_payload(mode: str, anchor: Optional[str], start: Optional[str], end: Optional[str]) -> dict:
    payload = {"mode": mode}
    if anchor is not None:
        payload["anchor"] = anchor
    if start is not None:
        payload["start"] = start
    if end is not None:
        payload["end"] = end
    return payload


# ---------- Service callers ----------
def date_range(mode: str, anchor: str, start: str | None = None, end: str | None = None, **transport):
    payload = {"request_type": "date_range", **_view_payload(mode, anchor, start, end)}
    return _request(payload, **transport)


def shift_anchor(mode: str, anchor: str, direction: int, **transport):
    payload = {"request_type": "shift", "mode": mode, "anchor": anchor, "direction": direction}
    return _request(payload, **transport)


def completion_stats(
    habits: List[Habit],
    records: List[CompletionRecord],
    mode: str,
    anchor: str,
    today: str,
    **transport,
):
    payload = {
        "request_type": "completion_stats",
        "today": today,
        **_view_payload(mode, anchor, None, None),
        **_snapshot_payload(habits, records),
    }
    return _request(payload, **transport)


def streaks_for_habit(habit_id: str, records: List[CompletionRecord], as_of: str, **transport):
    """Current and best streak for one habit over the trailing allTime window."""
    payload = {
        "request_type": "streaks",
        "habit_id": habit_id,
        "as_of": as_of,
        "today": as_of,
        **_snapshot_payload([], records),
    }
    return _request(payload, **transport)


def dashboard_overview(
    habits: List[Habit],
    records: List[CompletionRecord],
    today: str,
    mode: str = "week",
    anchor: str | None = None,
    **transport,
):
    payload = {
        "request_type": "dashboard",
        "today": today,
        **_view_payload(mode, anchor, None, None),
        **_snapshot_payload(habits, records),
    }
    return _request(payload, **transport)


def analytics_overview(
    habits: List[Habit],
    records: List[CompletionRecord],
    today: str,
    preset: str = "30d",
    **transport,
):
    if not habits:
        return None, "No habits yet."
    payload = {
        "request_type": "analytics",
        "today": today,
        "preset": preset,
        **_snapshot_payload(habits, records),
    }
    return _request(payload, **transport)


# ---------- Public aggregation ----------
def gather_snapshot(
    habits: List[Habit],
    records: List[CompletionRecord],
    today: str,
    mode: str = "week",
    anchor: str | None = None,
    preset: str = "30d",
    **transport,
):
    """
    Collect the dashboard and analytics data in one call so a view can refresh quickly.
    Returns a dict with keys: dashboard, analytics (each {"response", "error"}).
    """
    snapshot = {
        "dashboard": {"response": None, "error": None},
        "analytics": {"response": None, "error": None},
    }

    dashboard_resp, dashboard_err = dashboard_overview(habits, records, today, mode, anchor, **transport)
    snapshot["dashboard"]["response"] = dashboard_resp
    snapshot["dashboard"]["error"] = dashboard_err

    analytics_resp, analytics_err = analytics_overview(habits, records, today, preset, **transport)
    snapshot["analytics"]["response"] = analytics_resp
    snapshot["analytics"]["error"] = analytics_err

    return snapshot
