"""日期字符串工具（记录中的日期均为 YYYY-MM-DD 文本）"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def days_until(value: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """距目标日期的自然日数，已过期为负数；无法解析返回 None"""
    target = parse_date(value)
    if target is None:
        return None
    return (target - (today or date.today())).days
