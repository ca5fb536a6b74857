"""
Domain models - pure data structures for topics and debate rounds.
"""

from domain.models.debate import Persona, RecentLog, RoundPhase, RoundState, Side
from domain.models.topic import StatItem, Topic

__all__ = ["Persona", "RecentLog", "RoundPhase", "RoundState", "Side", "StatItem", "Topic"]
