"""
设备领域服务 - 台账查询、检验到期提醒、运行概览
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from domain.common.dates import days_until
from .entity import Equipment, EquipmentCategory, EquipmentStatus


@dataclass(frozen=True)
class InspectionAlert:
    """定期检验到期提醒"""
    equipment: Equipment
    due_date: str
    days_until: int

    @property
    def overdue(self) -> bool:
        return self.days_until < 0


@dataclass(frozen=True)
class StatusSummary:
    total: int
    active: int
    standby: int
    in_repair: int
    scrapped: int
    special: int

    @property
    def running_rate(self) -> float:
        """在用率（百分比，保留一位小数）"""
        if not self.total:
            return 0.0
        return round(self.active / self.total * 100, 1)


def inspection_alerts(
    equipment: Iterable[Equipment],
    within_days: int = 90,
    today: Optional[date] = None,
    category: Optional[EquipmentCategory] = None,
    team: Optional[str] = None,
) -> list[InspectionAlert]:
    """未报废且有下次检验日期、在 within_days 天内到期（含已过期）的设备，最紧迫的在前"""
    alerts: list[InspectionAlert] = []
    for eq in equipment:
        due = eq.inspection_due_date
        if not due or eq.is_scrapped:
            continue
        if category is not None and eq.category != category:
            continue
        if team is not None and (eq.team or "") != team:
            continue
        remaining = days_until(due, today)
        if remaining is None or remaining > within_days:
            continue
        alerts.append(InspectionAlert(equipment=eq, due_date=due, days_until=remaining))
    alerts.sort(key=lambda a: a.days_until)
    return alerts


def status_summary(equipment: Sequence[Equipment]) -> StatusSummary:
    def count(status: EquipmentStatus) -> int:
        return sum(1 for e in equipment if e.status == status)

    return StatusSummary(
        total=len(equipment),
        active=count(EquipmentStatus.ACTIVE),
        standby=count(EquipmentStatus.STANDBY),
        in_repair=count(EquipmentStatus.IN_REPAIR),
        scrapped=count(EquipmentStatus.SCRAPPED),
        special=sum(1 for e in equipment if e.is_special),
    )


# 台账默认不显示报废设备
DEFAULT_LEDGER_STATUSES = (
    EquipmentStatus.ACTIVE,
    EquipmentStatus.STANDBY,
    EquipmentStatus.IN_REPAIR,
)


def search_equipment(
    equipment: Iterable[Equipment],
    keyword: str = "",
    statuses: Iterable[EquipmentStatus] = DEFAULT_LEDGER_STATUSES,
    category: Optional[EquipmentCategory] = None,
) -> list[Equipment]:
    """关键词匹配名称、出厂编号、地点、队组（不区分大小写）"""
    wanted = set(statuses)
    needle = keyword.strip().lower()
    result = []
    for eq in equipment:
        if eq.status not in wanted:
            continue
        if category is not None and eq.category != category:
            continue
        if needle:
            haystack = (eq.name, eq.serial_number, getattr(eq, "location", None), eq.team)
            if not any(needle in str(v or "").lower() for v in haystack):
                continue
        result.append(eq)
    return result


def latest_equipment(equipment: Iterable[Equipment], limit: int = 5) -> list[Equipment]:
    return sorted(equipment, key=lambda e: e.id, reverse=True)[:limit]
