#!/usr/bin/env python3
"""ZeroMQ microservice answering date-range, streak and analytics requests."""

import json
import sys

import zmq

import config
from analytics import (
    analytics_summary,
    dashboard_summary,
    habit_breakdown,
    heatmap,
    trend_buckets,
    trend_series,
)
from completion_stats import (
    build_index,
    comparison_text,
    completed_count,
    completion_rate,
    period_delta,
    streak_summary,
)
from date_ranges import preceding_range, range_for, shift, trailing_range
from logging_config import get_logger, setup_logging
from models import (
    CUSTOM,
    VIEW_MODES,
    CompletionRecord,
    Habit,
    InvalidRange,
    MalformedDate,
    today_id,
    validate_day,
)

logger = get_logger("analytics_service")

SERVICE_NAME = "habit-analytics"


# =========================
# Snapshot & range parsing
# =========================

def parse_snapshot(request):
    """
    Turn the request's 'habits' and 'records' arrays into Habit objects and
    a completion index. Both arrays are optional; missing means empty.
    """
    raw_habits = request.get("habits", [])
    raw_records = request.get("records", [])
    if not isinstance(raw_habits, list) or not isinstance(raw_records, list):
        raise ValueError("'habits' and 'records' must be lists.")
    habits = [Habit.from_dict(item) for item in raw_habits]
    records = [CompletionRecord.from_dict(item) for item in raw_records]
    return habits, build_index(records)


def resolve_today(request):
    raw = request.get("today")
    if raw is None:
        logger.debug("No 'today' in request; using the local calendar date.")
        return today_id()
    return validate_day(raw)


def _all_time_days(request):
    value = request.get("all_time_days", config.ALL_TIME_DAYS)
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError("'all_time_days' must be a positive integer.")
    return value


def _mode(request, default="week"):
    mode = request.get("mode", default)
    if mode not in VIEW_MODES:
        raise ValueError(f"Invalid 'mode'. Expected one of: {', '.join(VIEW_MODES)}.")
    return mode


def resolve_range(request, today):
    """Pick the request's day range: an analytics preset or a view mode + anchor."""
    preset = request.get("preset")
    if preset is not None:
        if preset not in config.TRAILING_PRESETS:
            raise ValueError(
                f"Invalid 'preset'. Expected one of: {', '.join(config.TRAILING_PRESETS)}."
            )
        return trailing_range(today, config.TRAILING_PRESETS[preset])

    mode = _mode(request)
    anchor = validate_day(request.get("anchor", today))
    return range_for(
        mode,
        anchor,
        start=request.get("start") if mode == CUSTOM else None,
        end=request.get("end") if mode == CUSTOM else None,
        all_time_days=_all_time_days(request),
    )


# =========================
# Request handlers
# =========================

def handle_date_range(request):
    today = resolve_today(request)
    days = resolve_range(request, today)
    preset = request.get("preset")
    if preset is not None:
        return {"preset": preset, "days": days, "count": len(days)}
    return {"mode": _mode(request), "days": days, "count": len(days)}


def handle_shift(request):
    today = resolve_today(request)
    mode = _mode(request)
    anchor = validate_day(request.get("anchor", today))
    direction = request.get("direction")
    if not isinstance(direction, int) or isinstance(direction, bool) or direction not in (-1, 1):
        raise ValueError("'direction' must be -1 or 1.")
    all_time_days = _all_time_days(request)
    moved = shift(mode, anchor, direction, all_time_days=all_time_days)
    return {
        "mode": mode,
        "anchor": moved,
        "days": range_for(mode, moved, all_time_days=all_time_days),
    }


def handle_completion_stats(request):
    today = resolve_today(request)
    habits, index = parse_snapshot(request)
    days = resolve_range(request, today)
    prior = preceding_range(days)
    delta = period_delta(days, prior, habits, index)
    return {
        "range_start": days[0],
        "range_end": days[-1],
        "completion_rate": completion_rate(days, habits, index),
        "completed": completed_count(days, habits, index),
        "possible": len(habits) * len(days),
        "previous_rate": completion_rate(prior, habits, index),
        "delta": delta,
        "comparison": comparison_text(delta),
    }


def handle_streaks(request):
    today = resolve_today(request)
    habit_id = request.get("habit_id")
    if not isinstance(habit_id, str) or not habit_id:
        raise ValueError("'habit_id' must be a non-empty string.")
    _, index = parse_snapshot(request)
    as_of = validate_day(request.get("as_of", today))
    request = {"mode": "allTime", "anchor": as_of, **request}
    days = resolve_range(request, today)
    return {"habit_id": habit_id, "as_of": as_of, **streak_summary(habit_id, days, as_of, index)}


def handle_dashboard(request):
    today = resolve_today(request)
    habits, index = parse_snapshot(request)
    mode = _mode(request)
    return dashboard_summary(
        mode,
        validate_day(request.get("anchor", today)),
        habits,
        index,
        today,
        start=request.get("start") if mode == CUSTOM else None,
        end=request.get("end") if mode == CUSTOM else None,
        all_time_days=_all_time_days(request),
    )


def handle_analytics(request):
    today = resolve_today(request)
    habits, index = parse_snapshot(request)
    request = {"preset": "30d", **request} if "mode" not in request else request
    days = resolve_range(request, today)
    bucket_type = request.get("bucket_type", "month" if len(days) > 90 else "day")
    return {
        "range_start": days[0],
        "range_end": days[-1],
        "summary": analytics_summary(days, habits, index, today),
        "breakdown": habit_breakdown(days, habits, index),
        "trend": trend_series(days, habits, index),
        "bucket_type": bucket_type,
        "buckets": trend_buckets(days, habits, index, bucket_type),
        "heatmap": heatmap(days, habits, index, config.HEATMAP_MAX_DAYS),
    }


HANDLERS = {
    "date_range": handle_date_range,
    "shift": handle_shift,
    "completion_stats": handle_completion_stats,
    "streaks": handle_streaks,
    "dashboard": handle_dashboard,
    "analytics": handle_analytics,
}


# =========================
# Request / response helpers
# =========================

def make_error_response(message, error_type="BadRequest"):
    return {
        "status": "error",
        "error_type": error_type,
        "error": message,
    }


def make_success_response(request_type, result):
    return {
        "status": "ok",
        "request_type": request_type,
        "result": result,
    }


def serialize_response(response_dict):
    """
    Deterministic JSON encoding:
      - sort_keys=True → stable key order
      - separators=(',', ':') → no extra spaces
    """
    return json.dumps(
        response_dict,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def parse_request_bytes(raw_bytes):
    """
    Decode raw bytes into a Python dict, or return an error response.
    """
    try:
        request = json.loads(raw_bytes.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None, make_error_response("Invalid JSON in request body.")
    if not isinstance(request, dict):
        return None, make_error_response("Request body must be a JSON object.")
    return request, None


def process_request(request):
    """Dict in → dict out. Engine errors become error responses, never exceptions."""
    request_type = request.get("request_type")
    handler = HANDLERS.get(request_type) if isinstance(request_type, str) else None
    if handler is None:
        return make_error_response(
            f"Unsupported request_type. Expected one of: {', '.join(HANDLERS)}."
        )
    try:
        return make_success_response(request_type, handler(request))
    except MalformedDate as exc:
        logger.warning("Malformed date in %s request: %s", request_type, exc)
        return make_error_response(str(exc), "MalformedDate")
    except InvalidRange as exc:
        logger.warning("Invalid range in %s request: %s", request_type, exc)
        return make_error_response(str(exc), "InvalidRange")
    except (ValueError, TypeError) as exc:
        logger.warning("Bad %s request: %s", request_type, exc)
        return make_error_response(str(exc), "BadRequest")


def handle_message(raw_bytes):
    """
    Pure handler: bytes in → bytes out.
    Use this for unit tests.
    """
    request, parse_error = parse_request_bytes(raw_bytes)
    if parse_error is not None:
        return serialize_response(parse_error)
    return serialize_response(process_request(request))


# =========================
# ZeroMQ server & quit logic
# =========================

def create_socket(port):
    context = zmq.Context()
    socket = context.socket(zmq.REP)
    socket.bind(f"tcp://*:{port}")
    return context, socket


def is_quit_signal(raw_request: bytes) -> bool:
    """
    Accept raw b"q", UTF-8 "q" or JSON "q" (case-insensitive).
    """
    trimmed = raw_request.strip().lower()
    if trimmed == b"q":
        return True

    try:
        decoded = json.loads(trimmed.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return False

    return isinstance(decoded, str) and decoded.strip().lower() == "q"


def serve(socket, should_stop=lambda: False):
    """Answer requests until a quit signal arrives or should_stop() is true."""
    while not should_stop():
        try:
            raw_request = socket.recv()
        except zmq.Again:
            continue

        if is_quit_signal(raw_request):
            socket.send(serialize_response({"status": "ok", "message": f"{SERVICE_NAME} shutting down."}))
            logger.info("Received quit signal. Exiting.")
            break

        try:
            response_bytes = handle_message(raw_request)
        except Exception as exc:
            logger.exception("Unhandled error while processing request")
            response_bytes = serialize_response(
                make_error_response(f"Internal error: {exc}", "InternalError")
            )

        socket.send(response_bytes)


def run_server(port=config.ANALYTICS_PORT):
    context, socket = create_socket(port)
    socket.setsockopt(zmq.RCVTIMEO, 200)  # periodic wakeups so Ctrl+C is noticed
    logger.info("Listening on port %s. Send 'q' from a client to quit.", port)

    try:
        serve(socket)
    except KeyboardInterrupt:
        logger.info("Interrupted via keyboard.")
    finally:
        socket.close()
        context.term()


def main(argv=None):
    setup_logging(config.LOG_LEVEL, config.LOG_JSON)
    argv = sys.argv[1:] if argv is None else argv
    port = config.ANALYTICS_PORT
    if argv:
        try:
            port = int(argv[0])
        except ValueError:
            logger.warning("Invalid port '%s', using %s instead.", argv[0], port)
    run_server(port)


if __name__ == "__main__":
    main()
