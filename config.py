"""Environment-driven settings for the engine, service and clients."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{value}'.") from exc


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# Trailing window used by the allTime view and its navigation step.
ALL_TIME_DAYS = _env_int("HABITS_ALL_TIME_DAYS", 90)
HEATMAP_MAX_DAYS = _env_int("HABITS_HEATMAP_MAX_DAYS", 180)

ANALYTICS_PORT = _env_int("HABITS_ANALYTICS_PORT", 5570)
ANALYTICS_HOST = os.getenv("HABITS_ANALYTICS_HOST", "localhost")
TIMEOUT_MS = _env_int("HABITS_CLIENT_TIMEOUT_MS", 1500)

LOG_LEVEL = os.getenv("HABITS_LOG_LEVEL", "INFO").upper()
LOG_JSON = _env_bool("HABITS_LOG_JSON", default=False)

# Analytics page presets: trailing windows ending today.
TRAILING_PRESETS = {"7d": 7, "30d": 30, "90d": 90, "year": 365}
