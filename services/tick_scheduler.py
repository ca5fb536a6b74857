"""
Countdown and crowd-commentary timers for an active debate.

Two independent repeating timers run while the debate is in ROUND1 or
ROUND2: the countdown (one tick per period) and crowd commentary (every
2.5 periods by default). Both are armed and cancelled together. Every
round starts with freshly armed timers.
"""

from __future__ import annotations

import logging

from domain.models.debate import RoundPhase
from services.clock import Clock, TimerHandle
from services.round_state_machine import RoundStateMachine

logger = logging.getLogger("arena_bot.services.tick_scheduler")

DEFAULT_COUNTDOWN_PERIOD = 1.0
DEFAULT_COMMENTARY_MULTIPLIER = 2.5


class TickScheduler:
    """Keeps the round timers in step with the machine's phase."""

    def __init__(
        self,
        machine: RoundStateMachine,
        clock: Clock,
        countdown_period: float = DEFAULT_COUNTDOWN_PERIOD,
        commentary_multiplier: float = DEFAULT_COMMENTARY_MULTIPLIER,
    ):
        if countdown_period <= 0 or commentary_multiplier <= 0:
            raise ValueError("Timer periods must be positive")
        self.machine = machine
        self.clock = clock
        self.countdown_period = countdown_period
        self.commentary_period = countdown_period * commentary_multiplier
        self._countdown: TimerHandle | None = None
        self._commentary: TimerHandle | None = None
        self._closed = False
        machine.add_listener(self._on_phase_change)
        if machine.is_active:
            self._arm()

    @property
    def running(self) -> bool:
        return self._countdown is not None

    def _on_phase_change(self, old: RoundPhase, new: RoundPhase) -> None:
        if new.is_active:
            # Fresh timers for each round; cancel first so nothing double-fires
            self._cancel()
            self._arm()
        else:
            self._cancel()

    def _arm(self) -> None:
        if self._closed:
            return
        self._countdown = self.clock.call_every(self.countdown_period, self._on_countdown)
        self._commentary = self.clock.call_every(self.commentary_period, self._on_commentary)
        logger.debug(
            f"Timers armed for {self.machine.phase.name}: countdown every {self.countdown_period}s, "
            f"commentary every {self.commentary_period}s"
        )

    def _cancel(self) -> None:
        if self._countdown is None and self._commentary is None:
            return
        for handle in (self._countdown, self._commentary):
            if handle is not None:
                handle.cancel()
        self._countdown = None
        self._commentary = None
        logger.debug("Timers cancelled")

    def _on_countdown(self) -> None:
        remaining = self.machine.tick_countdown()
        logger.debug(f"Countdown tick: {remaining}s left in {self.machine.phase.name}")

    def _on_commentary(self) -> None:
        self.machine.tick_commentary()

    def close(self) -> None:
        """Tear down: cancel timers and stop following the machine."""
        self._cancel()
        self._closed = True
        self.machine.remove_listener(self._on_phase_change)
