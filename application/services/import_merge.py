"""
批量导入合并引擎

append 模式：设备按名称（区分大小写，首个匹配）合并，匹配到则除 id 外整体替换，
否则分配新 id；日志一律作为新记录追加，忽略传入的 id。
overwrite 模式：设备与日志集合整体替换为传入批次。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Union

from domain.common.exceptions import DomainValidationException
from domain.common.values import next_id
from domain.equipment.entity import Equipment
from domain.maintenance.entity import MaintenanceLog

EquipmentInput = Union[Equipment, Mapping[str, Any]]
LogInput = Union[MaintenanceLog, Mapping[str, Any]]


class ImportMode(str, Enum):
    APPEND = "append"
    OVERWRITE = "overwrite"

    @classmethod
    def parse(cls, value: "ImportMode | str") -> "ImportMode":
        try:
            return cls(value)
        except ValueError:
            raise DomainValidationException(
                f"Unsupported import mode: {value}",
                field="mode",
                details={"allowed": [m.value for m in cls]},
            ) from None


@dataclass
class ImportPlan:
    """合并结果：新的完整集合，以及需要逐条写入后端的增量"""
    mode: ImportMode
    equipment: list[Equipment]
    logs: list[MaintenanceLog]
    created_equipment: list[Equipment] = field(default_factory=list)
    updated_equipment: list[Equipment] = field(default_factory=list)
    created_logs: list[MaintenanceLog] = field(default_factory=list)


def to_equipment(item: EquipmentInput) -> Equipment:
    if isinstance(item, Equipment):
        return item.with_id(item.id)
    return Equipment.from_dict(item)


def to_log(item: LogInput) -> MaintenanceLog:
    if isinstance(item, MaintenanceLog):
        return item.with_id(item.id)
    return MaintenanceLog.from_dict(item)


def merge_equipment(
    existing: Iterable[Equipment], incoming: Iterable[EquipmentInput]
) -> tuple[list[Equipment], list[Equipment], list[Equipment]]:
    """返回 (合并后的集合, 新增的设备, 被更新的已有设备)"""
    merged = list(existing)
    created_ids: set[int] = set()
    updated_ids: set[int] = set()
    for item in incoming:
        eq = to_equipment(item)
        idx = next((i for i, e in enumerate(merged) if e.name == eq.name), None)
        if idx is not None:
            kept_id = merged[idx].id
            merged[idx] = eq.with_id(kept_id)
            if kept_id not in created_ids:
                updated_ids.add(kept_id)
        else:
            # 每次插入都重新计算，避免同一批次内 id 冲突
            new_id = next_id(e.id for e in merged)
            merged.append(eq.with_id(new_id))
            created_ids.add(new_id)
    created = [e for e in merged if e.id in created_ids]
    updated = [e for e in merged if e.id in updated_ids]
    return merged, created, updated


def append_logs(
    existing: Iterable[MaintenanceLog], incoming: Iterable[LogInput]
) -> tuple[list[MaintenanceLog], list[MaintenanceLog]]:
    """返回 (合并后的集合, 新增的日志)"""
    merged = list(existing)
    log_id = next_id(l.id for l in merged) - 1
    created = []
    for item in incoming:
        log_id += 1
        created.append(to_log(item).with_id(log_id))
    merged.extend(created)
    return merged, created


def plan_import(
    existing_equipment: Iterable[Equipment],
    existing_logs: Iterable[MaintenanceLog],
    equipment_batch: Iterable[EquipmentInput],
    log_batch: Iterable[LogInput],
    mode: ImportMode | str,
) -> ImportPlan:
    mode = ImportMode.parse(mode)
    if mode is ImportMode.OVERWRITE:
        return ImportPlan(
            mode=mode,
            equipment=[to_equipment(e) for e in equipment_batch],
            logs=[to_log(l) for l in log_batch],
        )

    equipment, created_eq, updated_eq = merge_equipment(existing_equipment, equipment_batch)
    logs, created_logs = append_logs(existing_logs, log_batch)
    return ImportPlan(
        mode=mode,
        equipment=equipment,
        logs=logs,
        created_equipment=created_eq,
        updated_equipment=updated_eq,
        created_logs=created_logs,
    )
