import json

import pytest

from application.ports.persistence import Collection
from application.services.entity_store import EntityStore
from domain.common.exceptions import DomainValidationException
from domain.equipment.entity import EquipmentStatus
from domain.user.entity import UserRole, UserStatus
from domain.user.service import PasswordService
from infrastructure.persistence import FileSessionStore, LocalJsonPersistence


def _equipment(name, **fields):
    return {"name": name, "model": "M-1", "serial_number": f"SN-{name}", **fields}


@pytest.mark.asyncio
async def test_seed_users_present_on_first_start(store):
    assert {u.username for u in store.users} == {"admin", "worker"}
    assert store.current_user is None


@pytest.mark.asyncio
async def test_add_equipment_ids_strictly_increasing(store):
    ids = []
    for i in range(5):
        eq = await store.add_equipment(_equipment(f"设备{i}"))
        ids.append(eq.id)
    assert ids == sorted(set(ids))
    assert ids == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_add_equipment_ignores_supplied_id_and_defaults_status(store):
    eq = await store.add_equipment(_equipment("采煤机", id=99))
    assert eq.id == 1
    assert eq.status is EquipmentStatus.ACTIVE


@pytest.mark.asyncio
async def test_delete_equipment_cascades_exactly_its_logs(store):
    a = await store.add_equipment(_equipment("A"))
    b = await store.add_equipment(_equipment("B"))
    for eq in (a, a, b):
        await store.add_log({"eq_id": eq.id, "log_type": "日常维护", "log_date": "2024-01-01"})

    await store.delete_equipment(a.id)

    assert [e.id for e in store.equipment] == [b.id]
    assert [l.eq_id for l in store.logs] == [b.id]


@pytest.mark.asyncio
async def test_fault_and_completion_logs_drive_status(store):
    eq = await store.add_equipment(_equipment("提升机"))
    await store.add_log({"eq_id": eq.id, "log_type": "故障维修", "log_date": "2024-02-01"})
    assert store.get_equipment(eq.id).status is EquipmentStatus.IN_REPAIR

    await store.add_log({"eq_id": eq.id, "log_type": "维修完成", "log_date": "2024-02-02"})
    assert store.get_equipment(eq.id).status is EquipmentStatus.ACTIVE


@pytest.mark.asyncio
async def test_status_rule_overrides_scrapped(store):
    eq = await store.add_equipment(_equipment("旧水泵", status="报废"))
    await store.add_log({"eq_id": eq.id, "log_type": "维修完成"})
    assert store.get_equipment(eq.id).status is EquipmentStatus.ACTIVE


@pytest.mark.asyncio
async def test_update_log_reapplies_status_rule(store):
    eq = await store.add_equipment(_equipment("皮带机"))
    log = await store.add_log({"eq_id": eq.id, "log_type": "日常维护"})
    assert store.get_equipment(eq.id).status is EquipmentStatus.ACTIVE

    log.log_type = "故障维修"
    assert await store.update_log(log)
    assert store.get_equipment(eq.id).status is EquipmentStatus.IN_REPAIR


@pytest.mark.asyncio
async def test_update_and_delete_missing_ids_are_noops(store):
    await store.add_equipment(_equipment("A"))
    before = store.equipment
    assert not await store.update_equipment({"id": 42, "name": "ghost"})
    assert not await store.delete_log(42)
    await store.delete_equipment(42)
    assert store.equipment == before


@pytest.mark.asyncio
async def test_returned_collections_are_copies(store):
    eq = await store.add_equipment(_equipment("A"))
    snapshot = store.equipment
    snapshot[0].name = "changed"
    assert store.get_equipment(eq.id).name == "A"


@pytest.mark.asyncio
async def test_duplicate_register_rejected(store):
    user = {"username": "zhang", "passwordHash": PasswordService.hash_password("pw"), "role": "admin", "status": "active"}
    assert await store.register(user)
    assert not await store.register(user)

    matches = [u for u in store.users if u.username == "zhang"]
    assert len(matches) == 1
    assert matches[0].status is UserStatus.PENDING
    assert matches[0].role is UserRole.WORKER
    assert store.current_user is None


@pytest.mark.asyncio
async def test_pending_user_cannot_login_until_approved(store):
    digest = PasswordService.hash_password("pw")
    await store.register({"username": "li", "passwordHash": digest})

    assert not await store.login("li", digest)
    assert store.current_user is None

    assert await store.update_user("li", {"status": "active"})
    assert await store.login("li", digest)
    assert store.current_user.username == "li"


@pytest.mark.asyncio
async def test_wrong_password_rejected(store, seed_digest):
    assert not await store.login("admin", PasswordService.hash_password("nope"))
    assert not await store.login("nobody", seed_digest)
    assert await store.login("admin", seed_digest)


@pytest.mark.asyncio
async def test_session_survives_restart(data_dir, store, seed_digest):
    assert await store.login("admin", seed_digest)

    restarted = EntityStore(LocalJsonPersistence(data_dir), FileSessionStore(data_dir / "session.json"))
    await restarted.initialize()
    assert restarted.current_user.username == "admin"

    await restarted.logout()
    assert restarted.current_user is None
    again = EntityStore(LocalJsonPersistence(data_dir), FileSessionStore(data_dir / "session.json"))
    await again.initialize()
    assert again.current_user is None


@pytest.mark.asyncio
async def test_session_not_restored_for_deleted_user(data_dir, store, seed_digest):
    assert await store.login("worker", seed_digest)
    assert await store.delete_user("worker")

    restarted = EntityStore(LocalJsonPersistence(data_dir), FileSessionStore(data_dir / "session.json"))
    await restarted.initialize()
    assert restarted.current_user is None


@pytest.mark.asyncio
async def test_admin_helpers(store):
    await store.register({"username": "wang", "passwordHash": "x" * 64})
    assert [u.username for u in store.pending_users()] == ["wang"]

    assert await store.approve_user("wang")
    assert await store.toggle_role("wang")
    wang = store.get_user("wang")
    assert wang.is_active and wang.is_admin
    assert store.pending_users() == []

    await store.register({"username": "zhao", "passwordHash": "x" * 64})
    assert await store.reject_user("zhao")
    assert store.get_user("zhao") is None


@pytest.mark.asyncio
async def test_delete_user_keeps_their_logs(store):
    eq = await store.add_equipment(_equipment("A"))
    await store.add_log({"eq_id": eq.id, "operator": "worker"})
    await store.delete_user("worker")
    assert len(store.logs) == 1


@pytest.mark.asyncio
async def test_partial_snapshot_replaces_only_present_collections(store):
    await store.add_equipment(_equipment("A"))
    users_before = store.users

    document = json.dumps({"equipment": [{"id": 7, "name": "B", "status": "备用"}]})
    assert await store.load_full_state(document)

    assert [e.id for e in store.equipment] == [7]
    assert store.users == users_before


@pytest.mark.asyncio
async def test_malformed_snapshot_changes_nothing(store):
    await store.add_equipment(_equipment("A"))
    before = (store.users, store.equipment, store.logs)
    assert not await store.load_full_state("not json")
    assert not await store.load_full_state("[1, 2]")
    assert not await store.load_full_state(json.dumps({"equipment": ["oops"]}))
    assert (store.users, store.equipment, store.logs) == before


@pytest.mark.asyncio
async def test_snapshot_round_trip(store):
    a = await store.add_equipment(_equipment("A", category="electrical", location="井底车场"))
    await store.add_equipment(_equipment("B", next_inspection_date="2025-01-01", custom="x"))
    await store.add_log({"eq_id": a.id, "log_type": "故障维修", "log_date": "2024-03-01"})
    await store.register({"username": "sun", "passwordHash": "y" * 64})
    before = (store.users, store.equipment, store.logs)

    document = store.get_full_state()
    await store.delete_equipment(a.id)
    assert await store.load_full_state(document)

    assert (store.users, store.equipment, store.logs) == before


@pytest.mark.asyncio
async def test_append_import_merges_by_name(store):
    await store.add_equipment(_equipment("采煤机", model="old"))
    await store.add_equipment(_equipment("刮板机"))

    plan = await store.import_data(
        [_equipment("采煤机", model="new"), _equipment("转载机")],
        [{"id": 50, "eq_id": 1, "log_type": "日常维护"}],
        "append",
    )

    by_name = {e.name: e for e in store.equipment}
    assert by_name["采煤机"].id == 1 and by_name["采煤机"].model == "new"
    assert by_name["转载机"].id == 3
    assert len(store.equipment) == 3
    assert [l.id for l in store.logs] == [1]
    assert len(plan.created_equipment) == 1 and len(plan.updated_equipment) == 1


@pytest.mark.asyncio
async def test_overwrite_import_replaces_wholesale(store):
    await store.add_equipment(_equipment("A"))
    await store.import_data([{"id": 10, "name": "Z"}], [], "overwrite")
    assert [(e.id, e.name) for e in store.equipment] == [(10, "Z")]
    assert store.logs == []


@pytest.mark.asyncio
async def test_mutations_are_written_through(data_dir, store):
    await store.add_equipment(_equipment("A"))
    await store.register({"username": "zhou", "passwordHash": "z" * 64})

    reloaded = EntityStore(LocalJsonPersistence(data_dir))
    await reloaded.initialize()
    assert [e.name for e in reloaded.equipment] == ["A"]
    assert reloaded.get_user("zhou") is not None


@pytest.mark.asyncio
async def test_dashboard_and_queries(store):
    a = await store.add_equipment(_equipment("A", is_special=True))
    await store.add_equipment(_equipment("B", status="备用"))
    await store.add_log({"eq_id": a.id, "log_type": "日常维护", "log_date": "2024-01-02"})
    await store.add_log({"eq_id": a.id, "log_type": "日常维护", "log_date": "2024-03-02"})

    summary = store.dashboard_summary()
    assert summary.status.total == 2 and summary.status.active == 1
    assert summary.status.running_rate == 50.0
    assert [e.name for e in summary.latest_equipment] == ["B", "A"]
    assert [l.log_date for l in store.equipment_history(a.id)] == ["2024-03-02", "2024-01-02"]
    assert [e.name for e in store.special_equipment()] == ["A"]
    assert [e.name for e in store.search_equipment("a")] == ["A"]


@pytest.mark.asyncio
async def test_out_of_range_numbers_in_snapshot_restore_everything_or_nothing(data_dir, store):
    document = (
        '{"users": [{"username": "only", "passwordHash": "x", "status": "active"}],'
        ' "equipment": [{"id": 1e400, "name": "x", "inspection_cycle": "1e400"}],'
        ' "logs": [{"id": Infinity, "eq_id": -Infinity}]}'
    )
    assert await store.load_full_state(document)

    assert [u.username for u in store.users] == ["only"]
    eq = store.equipment[0]
    assert (eq.id, eq.inspection_cycle) == (0, None)
    assert [(l.id, l.eq_id) for l in store.logs] == [(0, 0)]

    reloaded = EntityStore(LocalJsonPersistence(data_dir))
    await reloaded.initialize()
    assert [u.username for u in reloaded.users] == ["only"]


@pytest.mark.asyncio
async def test_append_import_defaults_out_of_range_numbers(store):
    await store.import_data([{"name": "a", "inspection_cycle": "1e400", "id": 1e400}], [{"eq_id": "1e400"}], "append")
    eq = store.equipment[0]
    assert (eq.id, eq.name, eq.inspection_cycle) == (1, "a", None)
    assert store.logs[0].eq_id == 0


@pytest.mark.asyncio
async def test_csv_import_merges_into_ledger(store):
    await store.add_equipment(_equipment("采煤机", model="old"))

    plan = await store.import_csv(
        equipment_csv="name,model,serial_number,is_special\n采煤机,new,0012,TRUE\n,X-1,0013,false\n",
        logs_csv="eq_id,log_type\n1,故障维修\n",
    )

    assert len(plan.created_equipment) == 1 and len(plan.updated_equipment) == 1
    by_id = {e.id: e for e in store.equipment}
    assert by_id[1].model == "new" and by_id[1].serial_number == "0012" and by_id[1].is_special
    assert by_id[2].name == "未命名设备"
    assert by_id[2].status is EquipmentStatus.STANDBY
    log = store.logs[0]
    assert (log.eq_id, log.log_type, log.operator, log.details) == (1, "故障维修", "导入数据", "批量导入")


@pytest.mark.asyncio
async def test_csv_export_round_trips_through_import(store):
    await store.add_equipment(_equipment("采煤机, 大型", team="综采一队"))
    await store.add_log({"eq_id": 1, "log_type": "日常维护", "log_date": "2024-05-01", "details": "更换\"滤芯\""})

    equipment_csv = store.export_csv("equipment")
    logs_csv = store.export_csv(Collection.LOGS)
    assert equipment_csv.splitlines()[0].startswith("id,name,model")
    assert '"采煤机, 大型"' in equipment_csv

    plan = await store.import_csv(equipment_csv, logs_csv)
    assert [e.id for e in plan.updated_equipment] == [1] and not plan.created_equipment
    assert [(e.id, e.name, e.team) for e in store.equipment] == [(1, "采煤机, 大型", "综采一队")]
    assert [(l.id, l.details, l.log_date) for l in store.logs][-1] == (2, '更换"滤芯"', "2024-05-01")


@pytest.mark.asyncio
async def test_csv_export_refuses_users(store):
    with pytest.raises(DomainValidationException):
        store.export_csv("users")
    with pytest.raises(DomainValidationException):
        store.export_csv("parts")
