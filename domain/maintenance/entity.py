"""
维修/保养日志实体
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from domain.common.values import coerce_int, optional_str
from domain.equipment.entity import EquipmentStatus

# log_type 中包含以下标记时自动改变设备状态
FAULT_REPAIR_MARKER = "故障维修"
REPAIR_COMPLETE_MARKER = "维修完成"


@dataclass
class MaintenanceLog:
    """日志实体 - eq_id 指向设备 id，设备删除后日志随之删除"""

    id: int
    eq_id: int
    log_type: str = ""
    log_date: str = ""
    operator: str = ""
    details: str = ""

    def derived_equipment_status(self) -> Optional[EquipmentStatus]:
        """业务规则：故障维修 → 维修中；维修完成 → 在用；其它类型不影响设备状态"""
        if FAULT_REPAIR_MARKER in self.log_type:
            return EquipmentStatus.IN_REPAIR
        if REPAIR_COMPLETE_MARKER in self.log_type:
            return EquipmentStatus.ACTIVE
        return None

    def with_id(self, log_id: int) -> "MaintenanceLog":
        return replace(self, id=log_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MaintenanceLog":
        return cls(
            id=coerce_int(data.get("id"), 0),
            eq_id=coerce_int(data.get("eq_id"), 0),
            log_type=optional_str(data.get("log_type")) or "",
            log_date=optional_str(data.get("log_date")) or "",
            operator=optional_str(data.get("operator")) or "",
            details=optional_str(data.get("details")) or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "eq_id": self.eq_id,
            "log_type": self.log_type,
            "log_date": self.log_date,
            "operator": self.operator,
            "details": self.details,
        }
