"""
Static commentary pools for the simulated crowd and moderator.

Lines are drawn from fixed pools; nothing is generated. Selection goes
through an injectable random source so tests can seed it.
"""

from __future__ import annotations

import logging
import random

from domain.models.debate import Persona

logger = logging.getLogger("arena_bot.services.commentary")

CROWD_LINES: dict[Persona, list[str]] = {
    Persona.ROWDY_PUB: [
        "Bosh! Say it with your chest!",
        "Bottle jobs!",
        "Stats don't lie... or do they?",
        "He's cooked!",
        "Net spend tax incoming!",
    ],
    Persona.RESPECTFUL_ANALYSTS: [
        "Interesting point on age profile.",
        "Please cite a source.",
        "Small sample size caveat.",
        "Consider fixture congestion.",
        "Good structure.",
    ],
    Persona.TALK_RADIO: [
        "Hot take alert!",
        "Cut the waffle—winner?",
        "Phones are melting!",
        "Producer says keep it moving!",
        "Not for purists!",
    ],
}

# First entry opens every debate; the rest are mid-debate prompts.
MODERATOR_PROMPTS: list[str] = [
    "Moderator: Opening statements—keep it tight.",
    "Value vs. cost: who got more per euro?",
    "Counter the tactical fit argument with an example.",
    "Consider injury history—does it change your view?",
    "Resale value in 2–3 years?",
    "Compare to last season—progress or repeat mistakes?",
]

CLOSING_LINE = "Moderator: Verdict time—simulated audience has spoken."

# Used by the thumbnail when the crowd has been quiet
FALLBACK_CROWD_LINES: tuple[str, ...] = ("Let him cook!", "Talk to me nice!", "We ball.")


def stat_drop_line(side_label: str, move_key: str) -> str:
    return f"Stat drop by {side_label} → {move_key}"


class CommentaryPools:
    """Random access to the crowd and moderator pools."""

    def __init__(
        self,
        rng: random.Random | None = None,
        crowd_lines: dict[Persona, list[str]] | None = None,
        moderator_prompts: list[str] | None = None,
    ):
        self._rng = rng or random.Random()
        self._crowd_lines = crowd_lines or CROWD_LINES
        self._moderator_prompts = moderator_prompts or MODERATOR_PROMPTS
        if len(self._moderator_prompts) < 2:
            raise ValueError("Need an opening prompt plus at least one follow-up prompt")

    @property
    def opening_prompt(self) -> str:
        return self._moderator_prompts[0]

    @property
    def closing_line(self) -> str:
        return CLOSING_LINE

    def crowd_pool(self, persona: Persona) -> list[str]:
        return list(self._crowd_lines[persona])

    def crowd_line(self, persona: Persona) -> str:
        """Uniformly random line from the persona's crowd pool."""
        line = self._rng.choice(self._crowd_lines[persona])
        logger.debug(f"Crowd line for {persona.display_name}: {line}")
        return line

    def moderator_prompt(self) -> str:
        """Uniformly random follow-up prompt; never the opening prompt."""
        return self._rng.choice(self._moderator_prompts[1:])
