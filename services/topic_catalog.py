"""
Topic catalog backed by the external topic feed.

The feed is a JSON array of topics, read once at startup from a local file
or an http(s) URL. Any load failure leaves the catalog empty; the bot keeps
running and simply has nothing to debate.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import requests

from domain.models.topic import Topic

logger = logging.getLogger("arena_bot.services.topic_catalog")

_INDEX_PATTERN = re.compile(r"[+-]?[0-9]+")


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def parse_topics(payload: Any) -> list[Topic]:
    """
    Convert a decoded feed into topics.

    Raises:
        ValueError / KeyError / TypeError: if the payload is not a list of
        topic objects.
    """
    if not isinstance(payload, list):
        raise ValueError(f"Topic feed must be a JSON array, got {type(payload).__name__}")
    return [Topic.from_dict(item) for item in payload]


def resolve_index(raw: str | int | None, catalog_length: int) -> int:
    """
    Resolve the external topic selection parameter.

    Non-numeric values and indices outside [0, catalog_length) fall back to 0.
    """
    if raw is None:
        return 0
    text = str(raw).strip()
    # Whole ASCII integers only: "1.5" falls back to 0 instead of reading as 1.
    if not _INDEX_PATTERN.fullmatch(text):
        logger.warning(f"Ignoring non-numeric topic index {raw!r}")
        return 0
    index = int(text)
    if 0 <= index < catalog_length:
        return index
    logger.warning(f"Topic index {index} outside catalog of {catalog_length}, using 0")
    return 0


class TopicCatalog:
    """Ordered, read-only list of topics."""

    def __init__(self, topics: list[Topic] | None = None, initial_index: str | int | None = None):
        self._topics: list[Topic] = list(topics or [])
        self.initial_index = resolve_index(initial_index, len(self._topics))

    @classmethod
    def load(
        cls,
        source: str,
        initial_index: str | int | None = None,
        timeout: float = 5.0,
    ) -> "TopicCatalog":
        """
        Load the catalog from a path or URL.

        Never raises: unreachable or malformed feeds produce an empty catalog.
        """
        try:
            if _is_url(source):
                response = requests.get(source, timeout=timeout)
                response.raise_for_status()
                payload = response.json()
            else:
                with open(Path(source), encoding="utf-8") as f:
                    payload = json.load(f)
            topics = parse_topics(payload)
        except requests.RequestException as e:
            logger.warning(f"Topic feed {source} unreachable: {e}")
            topics = []
        except OSError as e:
            logger.warning(f"Topic feed {source} could not be read: {e}")
            topics = []
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Topic feed {source} is malformed: {e}")
            topics = []

        catalog = cls(topics, initial_index=initial_index)
        logger.info(f"Loaded {len(catalog)} topics from {source} (initial index {catalog.initial_index})")
        return catalog

    @property
    def topics(self) -> list[Topic]:
        return list(self._topics)

    def get(self, index: int) -> Topic | None:
        if 0 <= index < len(self._topics):
            return self._topics[index]
        return None

    def is_empty(self) -> bool:
        return not self._topics

    def __len__(self) -> int:
        return len(self._topics)
