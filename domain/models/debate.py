"""
Debate round models: personas, sides, phases and the mutable round state.
"""

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

DEFAULT_LOG_CAPACITY = 7
DEFAULT_ROUND_LENGTH_SECONDS = 45


@dataclass(frozen=True)
class PersonaTheme:
    """Brand colours for the on-air chrome of a persona."""

    a: str
    b: str
    c: str
    accent: str


class Persona(Enum):
    """Commentary / visual style preset."""

    ROWDY_PUB = "Rowdy Pub"
    RESPECTFUL_ANALYSTS = "Respectful Analysts"
    TALK_RADIO = "Talk Radio"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def theme(self) -> PersonaTheme:
        return PERSONA_THEMES[self]

    @classmethod
    def parse(cls, raw: str | None) -> "Persona | None":
        """Match a persona by display name or enum name, case-insensitively."""
        if not raw:
            return None
        wanted = raw.strip().lower()
        for persona in cls:
            if wanted in (persona.value.lower(), persona.name.lower()):
                return persona
        return None


PERSONA_THEMES: dict[Persona, PersonaTheme] = {
    Persona.ROWDY_PUB: PersonaTheme(a="#ef4444", b="#f97316", c="#22c55e", accent="#facc15"),
    Persona.RESPECTFUL_ANALYSTS: PersonaTheme(a="#22d3ee", b="#60a5fa", c="#a78bfa", accent="#93c5fd"),
    Persona.TALK_RADIO: PersonaTheme(a="#f43f5e", b="#eab308", c="#06b6d4", accent="#fde047"),
}


class Side(Enum):
    """The user's allegiance. UNSET blocks starting a round and stat drops."""

    UNSET = "unset"
    A = "a"
    B = "b"

    @property
    def index(self) -> int:
        """Index into ``Topic.sides``."""
        if self is Side.UNSET:
            raise ValueError("UNSET has no side index")
        return 0 if self is Side.A else 1

    @property
    def tilt_sign(self) -> int:
        return 1 if self is Side.A else -1


class RoundPhase(Enum):
    """Round lifecycle. Phases only move forward until the next start."""

    IDLE = 0
    ROUND1 = 1
    ROUND2 = 2
    VERDICT = 3

    @property
    def is_active(self) -> bool:
        return self in (RoundPhase.ROUND1, RoundPhase.ROUND2)


class RecentLog:
    """
    Bounded log, most recent entry first.

    Pushing onto a full log drops the oldest entry.
    """

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY, entries: Iterable[str] = ()):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._entries: deque[str] = deque(maxlen=capacity)
        for entry in reversed(list(entries)):
            self.push(entry)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def push(self, entry: str) -> None:
        self._entries.appendleft(entry)

    def clear(self) -> None:
        self._entries.clear()

    def latest(self) -> str | None:
        return self._entries[0] if self._entries else None

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RecentLog):
            return list(self) == list(other)
        if isinstance(other, list):
            return list(self) == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"RecentLog({list(self._entries)!r}, capacity={self.capacity})"


@dataclass
class RoundState:
    """Mutable state of the live debate, owned by the round state machine."""

    round_length_seconds: int = DEFAULT_ROUND_LENGTH_SECONDS
    log_capacity: int = DEFAULT_LOG_CAPACITY
    phase: RoundPhase = RoundPhase.IDLE
    seconds_remaining: int = 0
    used_move_keys: list[str] = field(default_factory=list)  # chronological
    crowd_log: RecentLog = field(init=False)
    moderator_log: RecentLog = field(init=False)
    verdict_text: str = ""

    def __post_init__(self):
        self.crowd_log = RecentLog(self.log_capacity)
        self.moderator_log = RecentLog(self.log_capacity)
        self.seconds_remaining = self.round_length_seconds

    @property
    def moves_count(self) -> int:
        return len(self.used_move_keys)

    def has_used(self, key: str) -> bool:
        return key in self.used_move_keys

    def moves_latest_first(self) -> list[str]:
        """Used move keys in display order (reverse chronological)."""
        return list(reversed(self.used_move_keys))

    def reset(self) -> None:
        """Drop moves, logs and verdict; rewind the clock. Phase is left to the caller."""
        self.used_move_keys.clear()
        self.crowd_log.clear()
        self.moderator_log.clear()
        self.verdict_text = ""
        self.seconds_remaining = self.round_length_seconds
