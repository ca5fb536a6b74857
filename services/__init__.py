"""
Application services layer.

Services orchestrate the arena: topic loading, round timing and the
per-channel sessions built on the domain models.
"""

# Result type for consistent error handling
from services.result import Result

from services.arena_session_service import ArenaSession, ArenaSessionService
from services.round_state_machine import RoundStateMachine
from services.tick_scheduler import TickScheduler
from services.topic_catalog import TopicCatalog

__all__ = [
    "ArenaSession",
    "ArenaSessionService",
    "RoundStateMachine",
    "TickScheduler",
    "TopicCatalog",
    "Result",
]
