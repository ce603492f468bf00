"""记录字段的宽松转换工具

导入/恢复的数据可能来自 CSV 或旧版本的 JSON，字段类型并不可靠；
这里统一做“能转就转，转不了用默认值”的处理，不拒绝整条记录。
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return default


def coerce_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return int(float(value)) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def next_id(ids: Iterable[int]) -> int:
    """下一个可用ID：max(现有ID, 0) + 1"""
    return max([0, *ids]) + 1
