"""Diff a fetched occupancy list against the stored roster.

Pure decision logic, no I/O. Stale records are identified by name only,
while create/enrich/skip is decided on the exact (name, craft) pair. A
person whose craft changes therefore gets a second row and the old row is
kept for as long as the name stays in the feed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from scripts.astros.models import Occupant, OccupantRecord


class Action(str, Enum):
    CREATE = "create"
    ENRICH = "enrich"
    SKIP = "skip"


@dataclass(frozen=True)
class PlannedAction:
    kind: Action
    occupant: Occupant
    record: Optional[OccupantRecord] = None  # the matching stored row, if any


@dataclass(frozen=True)
class ReconcilePlan:
    """Result of reconcile(); actions are kept in feed order."""

    to_delete: tuple[str, ...] = ()
    actions: tuple[PlannedAction, ...] = field(default_factory=tuple)

    def _of(self, kind: Action) -> list[PlannedAction]:
        return [a for a in self.actions if a.kind is kind]

    @property
    def to_create(self) -> list[Occupant]:
        return [a.occupant for a in self._of(Action.CREATE)]

    @property
    def to_enrich(self) -> list[OccupantRecord]:
        return [a.record for a in self._of(Action.ENRICH)]

    @property
    def to_skip(self) -> list[OccupantRecord]:
        return [a.record for a in self._of(Action.SKIP)]

    @property
    def needs_image(self) -> list[PlannedAction]:
        return [a for a in self.actions if a.kind is not Action.SKIP]


def stale_names(
    fetched: Iterable[Occupant], stored: Iterable[OccupantRecord]
) -> tuple[str, ...]:
    """Names of stored records absent from the fetch, in roster order."""
    fetched_names = {o.name for o in fetched}
    seen: dict[str, None] = {}
    for record in stored:
        if record.name not in fetched_names:
            seen.setdefault(record.name, None)
    return tuple(seen)


def reconcile(
    fetched: Iterable[Occupant], stored: Iterable[OccupantRecord]
) -> ReconcilePlan:
    fetched = list(fetched)
    stored = list(stored)
    by_key = {r.key: r for r in stored}

    actions: list[PlannedAction] = []
    planned: set[tuple[str, str]] = set()
    for occupant in fetched:
        # The feed occasionally repeats a person; plan each pair once.
        if occupant.key in planned:
            continue
        planned.add(occupant.key)

        record = by_key.get(occupant.key)
        if record is None:
            actions.append(PlannedAction(Action.CREATE, occupant))
        elif not record.is_complete:
            actions.append(PlannedAction(Action.ENRICH, occupant, record))
        else:
            actions.append(PlannedAction(Action.SKIP, occupant, record))

    return ReconcilePlan(
        to_delete=stale_names(fetched, stored),
        actions=tuple(actions),
    )
