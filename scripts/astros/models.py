"""Roster value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Occupant:
    """One person as reported by the occupancy feed. Identity is (name, craft)."""

    name: str
    craft: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.craft)


@dataclass(frozen=True)
class OccupantRecord:
    name: str
    craft: str
    image_ref: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.craft)

    @property
    def is_complete(self) -> bool:
        """A record without an image is retried on every run."""
        return bool(self.image_ref)


@dataclass(frozen=True)
class FeedSnapshot:
    number: int
    people: list[Occupant] = field(default_factory=list)
