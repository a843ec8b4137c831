from __future__ import annotations

from scripts.astros.models import Occupant, OccupantRecord
from scripts.astros.reconciler import Action, reconcile, stale_names


def test_fully_enriched_roster_is_a_no_op() -> None:
    fetched = [Occupant("A", "ISS"), Occupant("B", "Tiangong")]
    stored = [
        OccupantRecord("A", "ISS", "/storage/astronauts/a-iss.jpg"),
        OccupantRecord("B", "Tiangong", "/storage/astronauts/b-tiangong.png"),
    ]

    first = reconcile(fetched, stored)
    second = reconcile(fetched, stored)

    for plan in (first, second):
        assert plan.to_delete == ()
        assert plan.to_create == []
        assert plan.to_enrich == []
        assert plan.to_skip == stored
        assert plan.needs_image == []


def test_stale_deletion_is_keyed_on_name_only() -> None:
    stored = [OccupantRecord("A", "X", "x.jpg"), OccupantRecord("A", "Y", "y.jpg")]

    plan = reconcile([Occupant("A", "X")], stored)

    assert plan.to_delete == ()
    assert plan.to_skip == [stored[0]]


def test_craft_change_creates_second_row_and_keeps_old_one() -> None:
    stored = [OccupantRecord("A", "Soyuz", "a.jpg")]

    plan = reconcile([Occupant("A", "ISS")], stored)

    assert plan.to_delete == ()
    assert plan.to_create == [Occupant("A", "ISS")]


def test_missing_names_are_deleted_once_each() -> None:
    stored = [
        OccupantRecord("Gone", "ISS", None),
        OccupantRecord("Stays", "ISS", "s.jpg"),
        OccupantRecord("Gone", "Soyuz", "g.jpg"),
        OccupantRecord("Also Gone", "ISS", None),
    ]

    plan = reconcile([Occupant("Stays", "ISS")], stored)

    assert plan.to_delete == ("Gone", "Also Gone")


def test_record_without_image_is_always_retried() -> None:
    stored = [OccupantRecord("A", "ISS", None), OccupantRecord("B", "ISS", "")]
    fetched = [Occupant("A", "ISS"), Occupant("B", "ISS")]

    for _ in range(3):
        plan = reconcile(fetched, stored)
        assert plan.to_enrich == stored


def test_actions_follow_feed_order() -> None:
    stored = [OccupantRecord("C", "ISS", None), OccupantRecord("B", "ISS", "b.jpg")]
    fetched = [Occupant("A", "ISS"), Occupant("B", "ISS"), Occupant("C", "ISS"), Occupant("D", "ISS")]

    plan = reconcile(fetched, stored)

    assert [(a.kind, a.occupant.name) for a in plan.actions] == [
        (Action.CREATE, "A"),
        (Action.SKIP, "B"),
        (Action.ENRICH, "C"),
        (Action.CREATE, "D"),
    ]
    assert [a.occupant.name for a in plan.needs_image] == ["A", "C", "D"]
    assert plan.actions[2].record == stored[0]


def test_repeated_feed_entries_are_planned_once() -> None:
    fetched = [Occupant("A", "ISS"), Occupant("A", "ISS"), Occupant("A", "Soyuz")]

    plan = reconcile(fetched, [])

    assert plan.to_create == [Occupant("A", "ISS"), Occupant("A", "Soyuz")]


def test_empty_feed_marks_everyone_stale() -> None:
    stored = [OccupantRecord("A", "ISS", "a.jpg"), OccupantRecord("B", "ISS", None)]

    assert reconcile([], stored).to_delete == ("A", "B")
    assert stale_names([], []) == ()
