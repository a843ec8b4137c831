"""Keyed persistence for the roster."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from scripts.astros.db import Database
from scripts.astros.models import OccupantRecord

logger = logging.getLogger("astros.roster_store")


class RosterStore(ABC):
    """Records are addressed by (name, craft); stale eviction is by name."""

    @abstractmethod
    def all(self) -> list[OccupantRecord]:
        """Every stored record, in insertion order."""

    @abstractmethod
    def find_by_name_and_craft(self, name: str, craft: str) -> Optional[OccupantRecord]:
        ...

    @abstractmethod
    def delete_where_name_not_in(self, names: Sequence[str]) -> int:
        """Delete records whose name is not listed. Returns the number removed."""

    @abstractmethod
    def create(self, record: OccupantRecord) -> None:
        ...

    @abstractmethod
    def update_image(self, name: str, craft: str, image_ref: Optional[str]) -> None:
        ...


class PostgresRosterStore(RosterStore):
    """Each write commits in its own transaction."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def all(self) -> list[OccupantRecord]:
        with self.db.transaction() as cur:
            cur.execute("SELECT name, craft, image_url FROM astronauts ORDER BY id")
            return [OccupantRecord(*row) for row in cur.fetchall()]

    def find_by_name_and_craft(self, name: str, craft: str) -> Optional[OccupantRecord]:
        with self.db.transaction() as cur:
            cur.execute(
                "SELECT name, craft, image_url FROM astronauts WHERE name = %s AND craft = %s",
                (name, craft),
            )
            row = cur.fetchone()
        return OccupantRecord(*row) if row else None

    def delete_where_name_not_in(self, names: Sequence[str]) -> int:
        with self.db.transaction() as cur:
            if names:
                cur.execute(
                    "DELETE FROM astronauts WHERE NOT (name = ANY(%s))",
                    (list(names),),
                )
            else:
                cur.execute("DELETE FROM astronauts")
            return cur.rowcount

    def create(self, record: OccupantRecord) -> None:
        with self.db.transaction() as cur:
            cur.execute(
                "INSERT INTO astronauts (name, craft, image_url) VALUES (%s, %s, %s)",
                (record.name, record.craft, record.image_ref),
            )

    def update_image(self, name: str, craft: str, image_ref: Optional[str]) -> None:
        with self.db.transaction() as cur:
            cur.execute(
                """UPDATE astronauts
                   SET image_url = %s, updated_at = NOW()
                   WHERE name = %s AND craft = %s""",
                (image_ref, name, craft),
            )
            if cur.rowcount == 0:
                logger.warning(
                    "No stored record to update for %s (%s)", name, craft,
                    extra={"occupant": name, "craft": craft},
                )
