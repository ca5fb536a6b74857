"""
ArenaSessionService: one debate arena per channel.

Each channel gets its own ArenaSession: the selected topic, a round state
machine and the tick scheduler that drives it. All state is in memory and
disappears with the process.
"""

from __future__ import annotations

import io
import logging
import random
from dataclasses import dataclass
from pathlib import Path

from domain.models.debate import (
    DEFAULT_LOG_CAPACITY,
    DEFAULT_ROUND_LENGTH_SECONDS,
    Persona,
    RoundPhase,
    RoundState,
    Side,
)
from domain.models.topic import Topic
from domain.services.verdict_calculator import VerdictCalculator
from services import error_codes
from services.clock import AsyncioClock, Clock
from services.commentary_pools import CommentaryPools
from services.result import Result
from services.round_state_machine import PhaseListener, RoundStateMachine
from services.tick_scheduler import DEFAULT_COMMENTARY_MULTIPLIER, DEFAULT_COUNTDOWN_PERIOD, TickScheduler
from services.topic_catalog import TopicCatalog
from utils.thumbnail_drawing import draw_thumbnail, save_thumbnail

logger = logging.getLogger("arena_bot.services.arena_session")


@dataclass
class ArenaSession:
    """State for the arena running in one channel."""

    channel_id: int
    topic_index: int
    machine: RoundStateMachine
    scheduler: TickScheduler
    last_thumbnail: bytes | None = None

    @property
    def topic(self) -> Topic | None:
        return self.machine.topic

    @property
    def state(self) -> RoundState:
        return self.machine.state


class ArenaSessionService:
    """Creates, drives and tears down per-channel arena sessions."""

    def __init__(
        self,
        catalog: TopicCatalog,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        default_persona: Persona = Persona.ROWDY_PUB,
        round_length_seconds: int = DEFAULT_ROUND_LENGTH_SECONDS,
        countdown_period: float = DEFAULT_COUNTDOWN_PERIOD,
        commentary_multiplier: float = DEFAULT_COMMENTARY_MULTIPLIER,
        log_capacity: int = DEFAULT_LOG_CAPACITY,
        export_dir: str | Path = "thumbnails",
    ):
        self.catalog = catalog
        self.clock = clock or AsyncioClock()
        self.rng = rng or random.Random()
        self.default_persona = default_persona
        self.round_length_seconds = round_length_seconds
        self.countdown_period = countdown_period
        self.commentary_multiplier = commentary_multiplier
        self.log_capacity = log_capacity
        self.export_dir = Path(export_dir)
        self.pools = CommentaryPools(self.rng)
        self.verdict_calculator = VerdictCalculator(self.rng)
        self._sessions: dict[int, ArenaSession] = {}

    # ------------------------------------------------------------------
    # Session registry
    # ------------------------------------------------------------------

    def get_session(self, channel_id: int) -> ArenaSession:
        """Get the channel's session, creating it on first use."""
        session = self._sessions.get(channel_id)
        if session is None:
            index = self.catalog.initial_index
            machine = RoundStateMachine(
                topic=self.catalog.get(index),
                pools=self.pools,
                verdict_calculator=self.verdict_calculator,
                persona=self.default_persona,
                round_length_seconds=self.round_length_seconds,
                log_capacity=self.log_capacity,
            )
            scheduler = TickScheduler(
                machine,
                self.clock,
                countdown_period=self.countdown_period,
                commentary_multiplier=self.commentary_multiplier,
            )
            session = ArenaSession(channel_id=channel_id, topic_index=index, machine=machine, scheduler=scheduler)
            self._sessions[channel_id] = session
            logger.info(f"Created arena session for channel {channel_id} (topic {index})")
        return session

    def has_session(self, channel_id: int) -> bool:
        return channel_id in self._sessions

    def add_phase_listener(self, channel_id: int, listener: PhaseListener) -> None:
        self.get_session(channel_id).machine.add_listener(listener)

    def close(self, channel_id: int) -> None:
        """Cancel the channel's timers and forget the session."""
        session = self._sessions.pop(channel_id, None)
        if session is None:
            logger.debug(f"No arena session to close for channel {channel_id}")
            return
        session.scheduler.close()
        logger.info(f"Closed arena session for channel {channel_id}")

    def close_all(self) -> None:
        for channel_id in list(self._sessions):
            self.close(channel_id)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def list_topics(self) -> list[Topic]:
        return self.catalog.topics

    def select_topic(self, channel_id: int, index: int) -> Result[Topic]:
        """Switch topic. Any debate in progress is discarded."""
        if self.catalog.is_empty():
            return Result.fail("No topics are loaded.", code=error_codes.EMPTY_CATALOG)
        topic = self.catalog.get(index)
        if topic is None:
            return Result.fail(
                f"Topic {index} does not exist (0-{len(self.catalog) - 1}).",
                code=error_codes.TOPIC_NOT_FOUND,
            )
        session = self.get_session(channel_id)
        session.topic_index = index
        session.last_thumbnail = None
        session.machine.set_topic(topic)
        logger.info(f"Channel {channel_id} switched to topic {index}: {topic.title}")
        return Result.ok(topic)

    def set_persona(self, channel_id: int, persona: Persona | str) -> Result[Persona]:
        if isinstance(persona, str):
            parsed = Persona.parse(persona)
            if parsed is None:
                return Result.fail(f"Unknown persona '{persona}'.", code=error_codes.INVALID_PERSONA)
            persona = parsed
        self.get_session(channel_id).machine.set_persona(persona)
        return Result.ok(persona)

    def join_side(self, channel_id: int, side: Side | str) -> Result[Side]:
        if isinstance(side, str):
            try:
                side = Side(side.strip().lower())
            except ValueError:
                return Result.fail(f"Unknown side '{side}'.", code=error_codes.INVALID_SIDE)
        return self.get_session(channel_id).machine.join(side)

    # ------------------------------------------------------------------
    # Round operations
    # ------------------------------------------------------------------

    def start(self, channel_id: int) -> Result[RoundState]:
        session = self.get_session(channel_id)
        result = session.machine.start()
        if result:
            session.last_thumbnail = None
        return result

    def record_move(self, channel_id: int, move_number: int) -> Result[str]:
        """Play the topic's ``move_number``-th item (1-based, facts then derived)."""
        session = self.get_session(channel_id)
        if session.topic is None:
            return Result.fail("No topic selected.", code=error_codes.NO_TOPIC)
        moves = session.topic.moves
        if not 1 <= move_number <= len(moves):
            logger.warning(f"Channel {channel_id}: move {move_number} out of range")
            return Result.fail(
                f"Pick a move between 1 and {len(moves)}.", code=error_codes.MOVE_NOT_FOUND
            )
        return session.machine.record_move(moves[move_number - 1])

    def end_round(self, channel_id: int) -> Result[RoundPhase]:
        return self.get_session(channel_id).machine.advance()

    # ------------------------------------------------------------------
    # Thumbnails
    # ------------------------------------------------------------------

    def render_thumbnail(self, channel_id: int) -> Result[io.BytesIO]:
        """Compose the channel's current thumbnail as PNG."""
        session = self.get_session(channel_id)
        machine = session.machine
        buffer = draw_thumbnail(
            machine.topic,
            machine.persona,
            list(machine.state.crowd_log),
            machine.state.verdict_text,
        )
        if buffer is None:
            return Result.fail("No topic selected.", code=error_codes.NO_TOPIC)
        session.last_thumbnail = buffer.getvalue()
        return Result.ok(buffer)

    def export_thumbnail(self, channel_id: int, now_ms: int | None = None) -> Result[Path]:
        """
        Save the channel's last rendered thumbnail to the export directory.

        Only a thumbnail rendered since the current debate started can be
        saved; starting a debate or switching topic discards it.
        """
        session = self.get_session(channel_id)
        if session.topic is None:
            return Result.fail("No topic selected.", code=error_codes.NO_TOPIC)
        if session.last_thumbnail is None:
            logger.warning(f"Channel {channel_id}: nothing rendered to export")
            return Result.fail("Render a thumbnail with /thumbnail first.", code=error_codes.NO_THUMBNAIL)
        path = save_thumbnail(io.BytesIO(session.last_thumbnail), self.export_dir, now_ms)
        logger.info(f"Exported thumbnail for channel {channel_id} to {path}")
        return Result.ok(path)

