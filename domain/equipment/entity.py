"""
设备领域实体

机电设备与电气设备共享一组公共字段，各自的专属字段放在子类里；
不属于该类别的字段原样保存在 extras 中，保证导入/恢复的数据不丢失。
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional

from domain.common.values import coerce_bool, coerce_enum, coerce_int, optional_str


class EquipmentStatus(str, Enum):
    ACTIVE = "在用"
    STANDBY = "备用"
    IN_REPAIR = "维修中"
    SCRAPPED = "报废"


class EquipmentCategory(str, Enum):
    MECHANICAL = "mechanical"
    ELECTRICAL = "electrical"


_COMMON_FIELDS = (
    "id", "name", "model", "serial_number", "status",
    "is_special", "team", "commission_date", "notes",
)
_INT_FIELDS = {"inspection_cycle"}


@dataclass
class Equipment:
    """设备实体 - 以 id 为唯一键"""

    id: int
    name: str
    model: str = ""
    serial_number: str = ""
    status: EquipmentStatus = EquipmentStatus.ACTIVE
    is_special: bool = False
    team: Optional[str] = None
    commission_date: Optional[str] = None
    notes: Optional[str] = None
    extras: dict[str, Any] = field(default_factory=dict)

    category: ClassVar[EquipmentCategory] = EquipmentCategory.MECHANICAL
    VARIANT_FIELDS: ClassVar[tuple[str, ...]] = ()

    def __post_init__(self):
        self.status = coerce_enum(EquipmentStatus, self.status, EquipmentStatus.STANDBY)

    @property
    def is_scrapped(self) -> bool:
        return self.status == EquipmentStatus.SCRAPPED

    @property
    def inspection_due_date(self) -> Optional[str]:
        value = getattr(self, "next_inspection_date", None) or self.extras.get("next_inspection_date")
        return optional_str(value) or None

    def with_status(self, status: EquipmentStatus) -> "Equipment":
        return replace(self, status=status, extras=dict(self.extras))

    def with_id(self, eq_id: int) -> "Equipment":
        return replace(self, id=eq_id, extras=dict(self.extras))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Equipment":
        """按 category 选择具体类别；缺省视为机电设备（兼容旧数据）"""
        category = coerce_enum(
            EquipmentCategory, data.get("category") or EquipmentCategory.MECHANICAL,
            EquipmentCategory.MECHANICAL,
        )
        variant = _VARIANTS[category]
        kwargs: dict[str, Any] = {
            "id": coerce_int(data.get("id"), 0),
            "name": optional_str(data.get("name")) or "",
            "model": optional_str(data.get("model")) or "",
            "serial_number": optional_str(data.get("serial_number")) or "",
            "status": data.get("status"),
            "is_special": coerce_bool(data.get("is_special", False)),
            "team": optional_str(data.get("team")),
            "commission_date": optional_str(data.get("commission_date")),
            "notes": optional_str(data.get("notes")),
        }
        for name in variant.VARIANT_FIELDS:
            value = data.get(name)
            kwargs[name] = coerce_int(value, None) if name in _INT_FIELDS else optional_str(value)
        known = set(_COMMON_FIELDS) | set(variant.VARIANT_FIELDS) | {"category"}
        kwargs["extras"] = {k: v for k, v in data.items() if k not in known}
        return variant(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extras)
        data.update({
            "id": self.id,
            "name": self.name,
            "model": self.model,
            "serial_number": self.serial_number,
            "status": self.status.value,
            "category": self.category.value,
            "is_special": self.is_special,
        })
        optional = ("team", "commission_date", "notes", *self.VARIANT_FIELDS)
        for name in optional:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass
class MechanicalEquipment(Equipment):
    """机电设备：含检验周期、特种设备证号等"""

    manufacturer: Optional[str] = None
    production_date: Optional[str] = None
    motor_model: Optional[str] = None
    power_rating: Optional[str] = None
    ma_ex_code: Optional[str] = None
    reducer_model: Optional[str] = None
    next_inspection_date: Optional[str] = None
    last_inspection_date: Optional[str] = None
    inspection_cycle: Optional[int] = None
    inspector: Optional[str] = None
    special_license: Optional[str] = None

    category: ClassVar[EquipmentCategory] = EquipmentCategory.MECHANICAL
    VARIANT_FIELDS: ClassVar[tuple[str, ...]] = (
        "manufacturer", "production_date", "motor_model", "power_rating",
        "ma_ex_code", "reducer_model", "next_inspection_date",
        "last_inspection_date", "inspection_cycle", "inspector", "special_license",
    )


@dataclass
class ElectricalEquipment(Equipment):
    """电气设备：commission_date 即入井日期"""

    location: Optional[str] = None
    usage: Optional[str] = None

    category: ClassVar[EquipmentCategory] = EquipmentCategory.ELECTRICAL
    VARIANT_FIELDS: ClassVar[tuple[str, ...]] = ("location", "usage")


_VARIANTS: dict[EquipmentCategory, type[Equipment]] = {
    EquipmentCategory.MECHANICAL: MechanicalEquipment,
    EquipmentCategory.ELECTRICAL: ElectricalEquipment,
}
