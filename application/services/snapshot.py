"""
全量快照编解码 - 备份/恢复整个数据集
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from application.dto import SnapshotDTO
from core.logging_config import get_logger

logger = get_logger(__name__)


def encode_snapshot(
    users: list[dict[str, Any]],
    equipment: list[dict[str, Any]],
    logs: list[dict[str, Any]],
    timestamp: Optional[datetime] = None,
) -> str:
    """生成可读的 JSON 快照文档"""
    dto = SnapshotDTO(
        users=users,
        equipment=equipment,
        logs=logs,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    return json.dumps(dto.model_dump(), ensure_ascii=False, indent=2)


def decode_snapshot(document: str | bytes) -> Optional[SnapshotDTO]:
    """解析快照；格式错误返回 None，调用方据此放弃整个恢复"""
    try:
        data = json.loads(document)
    except (TypeError, ValueError) as exc:
        logger.warning("snapshot_parse_failed", error=str(exc))
        return None
    if not isinstance(data, dict):
        logger.warning("snapshot_parse_failed", error="document is not a JSON object")
        return None
    try:
        return SnapshotDTO.model_validate(data)
    except ValidationError as exc:
        logger.warning("snapshot_parse_failed", error=str(exc))
        return None
