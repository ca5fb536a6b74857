"""
Round lifecycle for one debate.

Phases run Idle -> Round1 -> Round2 -> Verdict and only move forward until
the next start(). Both active rounds share the same timer and commentary
mechanics; they differ only in which moderator line is posted on entry.

Operations that are not valid in the current phase are rejected with a
failed Result and leave the state untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from domain.models.debate import (
    DEFAULT_LOG_CAPACITY,
    DEFAULT_ROUND_LENGTH_SECONDS,
    Persona,
    RoundPhase,
    RoundState,
    Side,
)
from domain.models.topic import StatItem, Topic
from domain.services.verdict_calculator import Verdict, VerdictCalculator
from services import error_codes
from services.commentary_pools import CommentaryPools, stat_drop_line
from services.result import Result

logger = logging.getLogger("arena_bot.services.round_state")

PhaseListener = Callable[[RoundPhase, RoundPhase], None]


class RoundStateMachine:
    """
    Owns the RoundState of a single live debate.

    Attributes:
        topic: Topic being debated (None until one is selected)
        persona: Active commentary persona
        joined_side: The user's side; UNSET blocks start() and record_move()
        state: Mutable round state
        verdict: Full verdict breakdown once the debate reaches VERDICT
    """

    def __init__(
        self,
        topic: Topic | None,
        pools: CommentaryPools,
        verdict_calculator: VerdictCalculator,
        persona: Persona = Persona.ROWDY_PUB,
        round_length_seconds: int = DEFAULT_ROUND_LENGTH_SECONDS,
        log_capacity: int = DEFAULT_LOG_CAPACITY,
    ):
        self.topic = topic
        self.persona = persona
        self.joined_side = Side.UNSET
        self.pools = pools
        self.verdict_calculator = verdict_calculator
        self.state = RoundState(
            round_length_seconds=max(1, round_length_seconds),
            log_capacity=log_capacity,
        )
        self.verdict: Verdict | None = None
        self._listeners: list[PhaseListener] = []
        # Phase whose countdown already expired; stops repeated zero ticks
        # from advancing more than once.
        self._expired_phase: RoundPhase | None = None

    @property
    def phase(self) -> RoundPhase:
        return self.state.phase

    @property
    def is_active(self) -> bool:
        return self.state.phase.is_active

    def add_listener(self, listener: PhaseListener) -> None:
        """Register a callback fired as ``listener(old_phase, new_phase)``."""
        self._listeners.append(listener)

    def remove_listener(self, listener: PhaseListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, old: RoundPhase, new: RoundPhase) -> None:
        for listener in list(self._listeners):
            try:
                listener(old, new)
            except Exception as exc:
                logger.error(f"Phase listener failed on {old.name} -> {new.name}: {exc}", exc_info=True)

    def _set_phase(self, new: RoundPhase) -> RoundPhase:
        old = self.state.phase
        self.state.phase = new
        return old

    def side_label(self, side: Side | None = None) -> str:
        side = side or self.joined_side
        if self.topic is None or side is Side.UNSET:
            return ""
        return self.topic.sides[side.index]

    # ------------------------------------------------------------------
    # Configuration changes
    # ------------------------------------------------------------------

    def join(self, side: Side) -> Result[Side]:
        if side is Side.UNSET:
            return Result.fail("Pick side A or side B.", code=error_codes.INVALID_SIDE)
        self.joined_side = side
        logger.info(f"Joined side {side.name} ({self.side_label()})")
        return Result.ok(side)

    def set_persona(self, persona: Persona) -> None:
        """Switch persona. The live debate keeps running."""
        self.persona = persona

    def set_topic(self, topic: Topic | None) -> None:
        """Switch topic; the current debate is discarded."""
        self.topic = topic
        self.reset()

    def reset(self) -> None:
        """Return to IDLE with empty moves, logs and verdict."""
        old = self._set_phase(RoundPhase.IDLE)
        self.state.reset()
        self.verdict = None
        self._expired_phase = None
        if old is not RoundPhase.IDLE:
            logger.info(f"Debate reset from {old.name}")
            self._notify(old, RoundPhase.IDLE)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> Result[RoundState]:
        """
        Begin a new debate in ROUND1.

        Valid only with a topic and a joined side, from IDLE or VERDICT.
        """
        if self.topic is None:
            logger.warning("Rejected start: no topic selected")
            return Result.fail("No topic selected.", code=error_codes.NO_TOPIC)
        if self.joined_side is Side.UNSET:
            logger.warning("Rejected start: no side joined")
            return Result.fail("Join a side before starting the debate.", code=error_codes.NO_SIDE_JOINED)
        if self.state.phase.is_active:
            logger.warning(f"Rejected start: debate already in {self.state.phase.name}")
            return Result.fail("A debate is already running.", code=error_codes.INVALID_PHASE)

        self.state.reset()
        self.verdict = None
        self._expired_phase = None
        self.state.moderator_log.push(self.pools.opening_prompt)
        old = self._set_phase(RoundPhase.ROUND1)
        logger.info(
            f"Debate started: '{self.topic.title}' as {self.side_label()} "
            f"({self.state.round_length_seconds}s rounds, {self.persona.display_name})"
        )
        self._notify(old, RoundPhase.ROUND1)
        return Result.ok(self.state)

    def advance(self) -> Result[RoundPhase]:
        """
        End the current round.

        ROUND1 -> ROUND2 posts a follow-up moderator prompt and rewinds the
        clock. ROUND2 -> VERDICT computes the verdict and posts the closing
        line. From IDLE or VERDICT this is a rejected no-op.
        """
        phase = self.state.phase
        if phase is RoundPhase.ROUND1:
            self.state.seconds_remaining = self.state.round_length_seconds
            self.state.moderator_log.push(self.pools.moderator_prompt())
            self._set_phase(RoundPhase.ROUND2)
            logger.info("Round 1 over, round 2 begins")
            self._notify(phase, RoundPhase.ROUND2)
            return Result.ok(RoundPhase.ROUND2)

        if phase is RoundPhase.ROUND2:
            self._set_phase(RoundPhase.VERDICT)
            self._conclude()
            self._notify(phase, RoundPhase.VERDICT)
            return Result.ok(RoundPhase.VERDICT)

        logger.debug(f"Ignored advance in {phase.name}")
        return Result.fail("No round is running.", code=error_codes.INVALID_PHASE)

    def _conclude(self) -> None:
        verdict = self.verdict_calculator.calculate(
            moves_count=self.state.moves_count,
            joined_side=self.joined_side,
            sides=self.topic.sides,
            best_moment=self.state.crowd_log.latest(),
        )
        self.verdict = verdict
        self.state.verdict_text = verdict.text
        # Newest first like every other entry, so the closing line leads the log.
        self.state.moderator_log.push(self.pools.closing_line)
        logger.info(
            f"Verdict: {verdict.winner_label} (base={verdict.base}, tilt={verdict.tilt}, "
            f"scores {verdict.score_a}-{verdict.score_b})"
        )

    # ------------------------------------------------------------------
    # Moves and ticks
    # ------------------------------------------------------------------

    def record_move(self, item: StatItem) -> Result[str]:
        """Play a stat drop. Each move key counts once per debate."""
        if self.joined_side is Side.UNSET:
            logger.warning("Rejected stat drop: no side joined")
            return Result.fail("Join a side before dropping stats.", code=error_codes.NO_SIDE_JOINED)
        if not self.state.phase.is_active:
            logger.warning(f"Rejected stat drop in {self.state.phase.name}")
            return Result.fail("Stat drops only count during a round.", code=error_codes.INVALID_PHASE)

        key = item.key
        if self.state.has_used(key):
            logger.debug(f"Duplicate stat drop ignored: {key}")
            return Result.fail(f"{key} has already been played.", code=error_codes.MOVE_ALREADY_USED)

        self.state.used_move_keys.append(key)
        self.state.crowd_log.push(stat_drop_line(self.side_label(), key))
        logger.info(f"Stat drop {key} by {self.side_label()} ({self.state.moves_count} total)")
        return Result.ok(key)

    def tick_countdown(self) -> int:
        """
        One countdown step. Clamps at zero; the first zero of a round
        advances the debate.

        Returns:
            Seconds remaining after the tick
        """
        phase = self.state.phase
        if not phase.is_active:
            return self.state.seconds_remaining

        self.state.seconds_remaining = max(0, self.state.seconds_remaining - 1)
        if self.state.seconds_remaining == 0 and self._expired_phase is not phase:
            self._expired_phase = phase
            logger.info(f"{phase.name} timed out")
            self.advance()
        return self.state.seconds_remaining

    def tick_commentary(self) -> str | None:
        """Post one random crowd line for the active persona."""
        if not self.state.phase.is_active:
            return None
        line = self.pools.crowd_line(self.persona)
        self.state.crowd_log.push(line)
        return line
