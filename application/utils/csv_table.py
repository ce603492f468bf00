"""CSV helpers for ledger export and bulk import."""
from __future__ import annotations

import csv
import io
import math
from datetime import date
from typing import Any, Iterable, Mapping

from domain.common.values import coerce_bool, coerce_int
from domain.equipment.entity import EquipmentStatus

# 列名含这些片段时保持文本（日期、出厂编号可能看起来像数字）
TEXT_COLUMN_MARKERS = ("date", "serial")

DEFAULT_EQUIPMENT_NAME = "未命名设备"
DEFAULT_LOG_TYPE = "日常维护"
DEFAULT_LOG_OPERATOR = "导入数据"
DEFAULT_LOG_DETAILS = "批量导入"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(rows: Iterable[Mapping[str, Any]]) -> str:
    """表头取自第一行的字段；仅在包含逗号、引号或换行时加引号"""
    rows = list(rows)
    if not rows:
        return ""
    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(h)) for h in headers])
    return buffer.getvalue().rstrip("\n")


def _to_number(text: str) -> int | float | None:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def coerce_cell(header: str, text: str) -> Any:
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if text and not any(marker in header for marker in TEXT_COLUMN_MARKERS):
        number = _to_number(text)
        if number is not None:
            return number
    return text


def parse_csv(text: str) -> list[dict[str, Any]]:
    """解析带表头的 CSV；空行忽略，少于一行数据时返回空列表"""
    text = text.lstrip("\ufeff")
    rows = [r for r in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in r)]
    if len(rows) < 2:
        return []
    headers = [h.strip() for h in rows[0]]
    result = []
    for raw in rows[1:]:
        values = [v.strip() for v in raw]
        record = {}
        for index, header in enumerate(headers):
            value = values[index] if index < len(values) else ""
            record[header] = coerce_cell(header, value)
        result.append(record)
    return result


def equipment_records_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """把 CSV 行补全为设备记录；id 由导入合并重新分配"""
    records = []
    for row in rows:
        record = dict(row)
        record["id"] = 0
        record["name"] = row.get("name") or DEFAULT_EQUIPMENT_NAME
        record["status"] = row.get("status") or EquipmentStatus.STANDBY.value
        record["is_special"] = coerce_bool(row.get("is_special"))
        for key in ("model", "serial_number", "team"):
            record[key] = _cell(row.get(key))
        records.append(record)
    return records


def log_records_from_rows(
    rows: Iterable[Mapping[str, Any]], today: date | None = None
) -> list[dict[str, Any]]:
    today = today or date.today()
    return [
        {
            "id": 0,
            "eq_id": coerce_int(row.get("eq_id"), 0) or 0,
            "log_type": row.get("log_type") or DEFAULT_LOG_TYPE,
            "log_date": _cell(row.get("log_date")) or today.isoformat(),
            "operator": row.get("operator") or DEFAULT_LOG_OPERATOR,
            "details": row.get("details") or DEFAULT_LOG_DETAILS,
        }
        for row in rows
    ]
