"""
Centralized configuration for the Pundit Arena bot.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")

# Topic feed: local JSON file or http(s) URL, read once at startup
TOPICS_SOURCE = os.getenv("TOPICS_SOURCE", "data/topics.json")
TOPICS_FETCH_TIMEOUT_SECONDS = _parse_float("TOPICS_FETCH_TIMEOUT_SECONDS", 5.0)
# Initial topic selection; validated against the loaded catalog, not here
ARENA_TOPIC_INDEX = os.getenv("ARENA_TOPIC_INDEX")
ARENA_DEFAULT_PERSONA = os.getenv("ARENA_DEFAULT_PERSONA", "Rowdy Pub")

# Round timing
ROUND_LENGTH_SECONDS = max(1, _parse_int("ROUND_LENGTH_SECONDS", 45))
COUNTDOWN_PERIOD_SECONDS = _parse_float("COUNTDOWN_PERIOD_SECONDS", 1.0)
COMMENTARY_PERIOD_MULTIPLIER = _parse_float("COMMENTARY_PERIOD_MULTIPLIER", 2.5)  # 2.5s crowd lines
if COUNTDOWN_PERIOD_SECONDS <= 0:
    COUNTDOWN_PERIOD_SECONDS = 1.0
if COMMENTARY_PERIOD_MULTIPLIER <= 0:
    COMMENTARY_PERIOD_MULTIPLIER = 2.5

ARENA_LOG_CAPACITY = max(1, _parse_int("ARENA_LOG_CAPACITY", 7))

THUMBNAIL_EXPORT_DIR = os.getenv("THUMBNAIL_EXPORT_DIR", "thumbnails")
