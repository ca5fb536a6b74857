"""
Pytest fixtures for tests.

This module provides the shared topic, a seeded random source and a virtual
clock so round timing can be driven tick by tick without sleeping.
"""

import json
import random

import pytest

from domain.models.topic import StatItem, Topic
from domain.services.verdict_calculator import VerdictCalculator
from services.arena_session_service import ArenaSessionService
from services.clock import VirtualClock
from services.commentary_pools import CommentaryPools
from services.round_state_machine import RoundStateMachine
from services.topic_catalog import TopicCatalog

# =============================================================================
# CENTRALIZED CONSTANTS
# =============================================================================

TEST_CHANNEL_ID = 12345
"""Standard channel ID for single-channel tests."""

TEST_CHANNEL_ID_SECONDARY = 67890
"""Secondary channel ID for channel isolation tests."""

RANDOM_SEED = 1234


def make_topic(title="X vs Y", sides=("X", "Y"), facts=None, derived=None) -> Topic:
    """Build a topic; defaults to the single-fact X vs Y card."""
    if facts is None:
        facts = [StatItem("Goals", 10)]
    return Topic(title=title, sides=tuple(sides), facts=tuple(facts), derived=tuple(derived or []))


SAMPLE_FEED = [
    {
        "title": "X vs Y",
        "sides": ["X", "Y"],
        "facts": [{"label": "Goals", "value": 10}],
        "derived": [],
    },
    {
        "title": "Best summer signing",
        "sides": ["Rice", "Bellingham"],
        "facts": [{"label": "Fee", "value": 116}, {"label": "Goals", "value": 19}],
        "derived": [{"label": "Pundit rating", "value": "8.9"}],
    },
]


@pytest.fixture
def topic():
    return make_topic()


@pytest.fixture
def rng():
    return random.Random(RANDOM_SEED)


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def pools(rng):
    return CommentaryPools(rng)


@pytest.fixture
def machine(topic, pools, rng):
    """Round state machine on the X vs Y topic with default 45s rounds."""
    return RoundStateMachine(topic, pools, VerdictCalculator(rng))


@pytest.fixture
def catalog():
    return TopicCatalog([Topic.from_dict(item) for item in SAMPLE_FEED])


@pytest.fixture
def arena_service(catalog, clock, rng, tmp_path):
    service = ArenaSessionService(catalog, clock=clock, rng=rng, export_dir=tmp_path / "thumbs")
    yield service
    service.close_all()


@pytest.fixture
def topics_file(tmp_path):
    path = tmp_path / "topics.json"
    path.write_text(json.dumps(SAMPLE_FEED), encoding="utf-8")
    return path
