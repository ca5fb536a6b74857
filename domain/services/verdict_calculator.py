"""
Verdict scoring for a finished debate.

The verdict is a deliberately simple randomizer, not a probability model:
a uniform base roll is tilted by the number of stat drops towards (or away
from) side A, then reflected around 50 to produce two scores summing to 100.
Neither tilt nor final score is clamped.
"""

import random
from dataclasses import dataclass

from domain.models.debate import Side

TILT_PER_MOVE = 2
EMPTY_MOMENT = "—"


@dataclass(frozen=True)
class Verdict:
    """Outcome of one verdict computation."""

    tilt: int
    base: int
    final: int
    score_a: int
    score_b: int
    winner: Side
    winner_label: str
    best_moment: str

    @property
    def text(self) -> str:
        return f"Winner: {self.winner_label}. Best moment: {self.best_moment}"


def compute_tilt(moves_count: int, joined_side: Side) -> int:
    """Bias term: two points per move, towards the joined side."""
    return moves_count * TILT_PER_MOVE * joined_side.tilt_sign


def reflect_scores(final: int) -> tuple[int, int]:
    """
    Split a final roll into (score_a, score_b).

    Rolls at or above 50 are reflected (score_a = 100 - final); the two
    scores always sum to 100.
    """
    score_a = 100 - final if final >= 50 else final
    return score_a, 100 - score_a


def pick_winner(score_a: int, score_b: int) -> Side:
    """Larger score wins. An exact 50/50 tie goes to side A."""
    return Side.A if score_a >= score_b else Side.B


class VerdictCalculator:
    """Computes the randomized, move-weighted winner once per debate."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def roll_base(self) -> int:
        """Uniform integer in [0, 100)."""
        return self._rng.randrange(100)

    def calculate(
        self,
        moves_count: int,
        joined_side: Side,
        sides: tuple[str, str],
        best_moment: str | None = None,
        base: int | None = None,
    ) -> Verdict:
        """
        Compute the verdict.

        Args:
            moves_count: Number of distinct stat drops played
            joined_side: Side the user joined (A tilts up, anything else down)
            sides: (side A label, side B label)
            best_moment: Most recent crowd line, if any
            base: Fixed base roll; drawn from the random source when omitted
        """
        tilt = compute_tilt(moves_count, joined_side)
        if base is None:
            base = self.roll_base()
        final = base + tilt
        score_a, score_b = reflect_scores(final)
        winner = pick_winner(score_a, score_b)
        return Verdict(
            tilt=tilt,
            base=base,
            final=final,
            score_a=score_a,
            score_b=score_b,
            winner=winner,
            winner_label=sides[winner.index],
            best_moment=best_moment or EMPTY_MOMENT,
        )
