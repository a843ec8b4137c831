from __future__ import annotations

from contextlib import contextmanager
from unittest.mock import MagicMock

from scripts.astros.models import OccupantRecord
from scripts.astros.roster_store import PostgresRosterStore


class FakeDatabase:
    def __init__(self) -> None:
        self.cursor = MagicMock()
        self.transactions = 0

    @contextmanager
    def transaction(self):
        self.transactions += 1
        yield self.cursor


def test_all_maps_rows_to_records() -> None:
    db = FakeDatabase()
    db.cursor.fetchall.return_value = [("A", "ISS", None), ("B", "ISS", "/storage/b.jpg")]

    assert PostgresRosterStore(db).all() == [
        OccupantRecord("A", "ISS", None),
        OccupantRecord("B", "ISS", "/storage/b.jpg"),
    ]


def test_find_by_name_and_craft() -> None:
    db = FakeDatabase()
    db.cursor.fetchone.return_value = ("A", "ISS", "a.jpg")
    store = PostgresRosterStore(db)

    assert store.find_by_name_and_craft("A", "ISS") == OccupantRecord("A", "ISS", "a.jpg")
    assert db.cursor.execute.call_args.args[1] == ("A", "ISS")

    db.cursor.fetchone.return_value = None
    assert store.find_by_name_and_craft("A", "Soyuz") is None


def test_delete_where_name_not_in() -> None:
    db = FakeDatabase()
    db.cursor.rowcount = 2

    removed = PostgresRosterStore(db).delete_where_name_not_in(("A", "B"))

    sql, params = db.cursor.execute.call_args.args
    assert "NOT (name = ANY(%s))" in sql
    assert params == (["A", "B"],)
    assert removed == 2


def test_delete_with_no_names_clears_roster() -> None:
    db = FakeDatabase()
    db.cursor.rowcount = 3

    assert PostgresRosterStore(db).delete_where_name_not_in([]) == 3
    assert db.cursor.execute.call_args.args == ("DELETE FROM astronauts",)


def test_each_write_is_its_own_transaction() -> None:
    db = FakeDatabase()
    db.cursor.rowcount = 1
    store = PostgresRosterStore(db)

    store.create(OccupantRecord("A", "ISS", None))
    store.update_image("A", "ISS", "a.jpg")

    assert db.transactions == 2
    sql, params = db.cursor.execute.call_args.args
    assert sql.lstrip().startswith("UPDATE astronauts")
    assert params == ("a.jpg", "A", "ISS")
