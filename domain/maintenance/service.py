"""
日志查询规则 - 单台设备全生命周期档案、最近日志
"""
from datetime import date
from typing import Iterable

from domain.common.dates import parse_date
from .entity import MaintenanceLog


def _date_key(log: MaintenanceLog) -> date:
    return parse_date(log.log_date) or date.min


def lifecycle_history(logs: Iterable[MaintenanceLog], eq_id: int) -> list[MaintenanceLog]:
    """指定设备的全部日志，按日期从新到旧"""
    return sorted((l for l in logs if l.eq_id == eq_id), key=_date_key, reverse=True)


def recent_logs(logs: Iterable[MaintenanceLog], limit: int = 5) -> list[MaintenanceLog]:
    return sorted(logs, key=_date_key, reverse=True)[:limit]
