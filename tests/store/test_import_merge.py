import pytest

from application.services.import_merge import (
    ImportMode,
    append_logs,
    merge_equipment,
    plan_import,
)
from domain.common.exceptions import DomainValidationException
from domain.equipment.entity import Equipment
from domain.maintenance.entity import MaintenanceLog


def _eq(eq_id, name, **fields):
    return Equipment.from_dict({"id": eq_id, "name": name, **fields})


def test_same_name_in_batch_merges_into_the_first_insert():
    merged, created, updated = merge_equipment(
        [_eq(4, "A")],
        [{"name": "B", "model": "v1"}, {"name": "B", "model": "v2"}],
    )
    assert [(e.id, e.name) for e in merged] == [(4, "A"), (5, "B")]
    assert merged[1].model == "v2"
    assert [e.id for e in created] == [5]
    assert updated == []


def test_name_match_is_case_sensitive():
    merged, created, _ = merge_equipment([_eq(1, "Pump")], [{"name": "pump"}])
    assert [e.id for e in merged] == [1, 2]
    assert len(created) == 1


def test_matched_equipment_keeps_its_id():
    merged, _, updated = merge_equipment([_eq(3, "A", model="old")], [{"id": 99, "name": "A", "model": "new"}])
    assert merged[0].id == 3 and merged[0].model == "new"
    assert [e.id for e in updated] == [3]


def test_logs_get_fresh_sequential_ids():
    existing = [MaintenanceLog(2, 1), MaintenanceLog(9, 1)]
    merged, created = append_logs(existing, [{"id": 1, "eq_id": 1}, {"id": 1, "eq_id": 2}])
    assert [l.id for l in created] == [10, 11]
    assert len(merged) == 4


def test_overwrite_keeps_supplied_ids():
    plan = plan_import([_eq(1, "A")], [MaintenanceLog(1, 1)], [{"id": 20, "name": "Z"}], [], "overwrite")
    assert plan.mode is ImportMode.OVERWRITE
    assert [e.id for e in plan.equipment] == [20]
    assert plan.logs == []


def test_input_entities_are_not_shared_with_plan():
    incoming = _eq(0, "A")
    plan = plan_import([], [], [incoming], [], ImportMode.APPEND)
    plan.equipment[0].name = "changed"
    assert incoming.name == "A"


def test_unknown_mode_rejected():
    with pytest.raises(DomainValidationException):
        plan_import([], [], [], [], "merge")
