from domain.common.values import coerce_int
from domain.equipment.entity import (
    ElectricalEquipment,
    Equipment,
    EquipmentCategory,
    EquipmentStatus,
    MechanicalEquipment,
)
from domain.maintenance.entity import MaintenanceLog
from domain.user.entity import User, UserRole, UserStatus


def test_missing_category_defaults_to_mechanical():
    eq = Equipment.from_dict({"id": 1, "name": "主通风机", "status": "在用"})
    assert isinstance(eq, MechanicalEquipment)
    assert eq.category is EquipmentCategory.MECHANICAL
    assert eq.to_dict()["category"] == "mechanical"


def test_electrical_variant_keeps_its_fields():
    eq = Equipment.from_dict({
        "id": 2, "name": "隔爆开关", "category": "electrical",
        "location": "-350水平", "usage": "照明", "status": "备用",
    })
    assert isinstance(eq, ElectricalEquipment)
    assert eq.location == "-350水平"
    data = eq.to_dict()
    assert data["location"] == "-350水平"
    assert "next_inspection_date" not in data


def test_unknown_fields_survive_round_trip():
    raw = {"id": 3, "name": "皮带机", "custom_tag": "A-7", "status": "在用", "category": "mechanical"}
    eq = Equipment.from_dict(raw)
    assert eq.extras == {"custom_tag": "A-7"}
    assert eq.to_dict()["custom_tag"] == "A-7"


def test_field_coercion():
    eq = Equipment.from_dict({
        "id": "7", "name": "提升机", "is_special": "TRUE",
        "inspection_cycle": "12", "status": "不存在的状态",
    })
    assert eq.id == 7
    assert eq.is_special is True
    assert eq.inspection_cycle == 12
    assert eq.status is EquipmentStatus.STANDBY


def test_with_status_does_not_share_extras():
    eq = Equipment.from_dict({"id": 1, "name": "x", "note2": "y"})
    repaired = eq.with_status(EquipmentStatus.IN_REPAIR)
    repaired.extras["note2"] = "z"
    assert eq.extras["note2"] == "y"
    assert eq.status is not EquipmentStatus.IN_REPAIR


def test_log_derived_status():
    assert MaintenanceLog(1, 1, log_type="故障维修").derived_equipment_status() is EquipmentStatus.IN_REPAIR
    assert MaintenanceLog(1, 1, log_type="电气故障维修").derived_equipment_status() is EquipmentStatus.IN_REPAIR
    assert MaintenanceLog(1, 1, log_type="维修完成").derived_equipment_status() is EquipmentStatus.ACTIVE
    assert MaintenanceLog(1, 1, log_type="日常维护").derived_equipment_status() is None


def test_user_wire_format_and_updates():
    user = User.from_dict({"username": "zhang", "passwordHash": "h" * 64, "role": "boss"})
    assert user.role is UserRole.WORKER
    assert user.status is UserStatus.PENDING
    assert user.to_dict()["passwordHash"] == "h" * 64

    changed = user.apply_updates({"status": "active", "team": "综采一队", "username": "li"})
    assert changed == ["status", "team"]
    assert user.username == "zhang"
    assert user.is_active


def test_out_of_range_numbers_fall_back_to_default():
    assert coerce_int("1e400") == 0
    assert coerce_int(float("inf"), None) is None
    assert coerce_int(float("-inf")) == 0
    assert coerce_int(float("nan")) == 0
    assert coerce_int("7.9") == 7

    eq = Equipment.from_dict({"id": 1e400, "name": "x", "inspection_cycle": "1e400"})
    assert (eq.id, eq.inspection_cycle) == (0, None)
    log = MaintenanceLog.from_dict({"id": float("inf"), "eq_id": "1e400"})
    assert (log.id, log.eq_id) == (0, 0)
