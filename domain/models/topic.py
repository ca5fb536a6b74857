"""
Topic domain model.

A topic is one debate card from the topic feed: a title, the two side
labels, and the fact / derived-rating items that can be played as moves.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StatItem:
    """A fact or derived rating usable as a stat-drop move."""

    label: str
    value: str | int | float

    @property
    def display_value(self) -> str:
        """Value as shown to players; whole floats drop the ``.0``."""
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)

    @property
    def key(self) -> str:
        """Move key used for deduplication, e.g. ``"Goals:10"``."""
        return f"{self.label}:{self.display_value}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatItem":
        value = data["value"]
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise TypeError(f"Unsupported stat value: {value!r}")
        return cls(label=str(data["label"]), value=value)

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class Topic:
    """Immutable debate topic, selected by index from the catalog."""

    title: str
    sides: tuple[str, str]
    facts: tuple[StatItem, ...] = ()
    derived: tuple[StatItem, ...] = ()

    @property
    def moves(self) -> tuple[StatItem, ...]:
        """All playable items: facts first, then derived ratings."""
        return self.facts + self.derived

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Topic":
        """
        Build a Topic from one element of the topic feed.

        Raises:
            KeyError / TypeError / ValueError: if the element does not match
            the feed shape. Callers treat that as a malformed feed.
        """
        sides = data["sides"]
        if not isinstance(sides, (list, tuple)) or len(sides) != 2:
            raise ValueError(f"Topic sides must be a pair, got {sides!r}")
        return cls(
            title=str(data["title"]),
            sides=(str(sides[0]), str(sides[1])),
            facts=tuple(StatItem.from_dict(item) for item in data.get("facts", [])),
            derived=tuple(StatItem.from_dict(item) for item in data.get("derived", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "sides": list(self.sides),
            "facts": [item.to_dict() for item in self.facts],
            "derived": [item.to_dict() for item in self.derived],
        }
