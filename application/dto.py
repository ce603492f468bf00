"""
数据传输对象（DTO）- 应用层与表现层/存储之间的数据传输
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer
from typing import Optional, Any
from datetime import datetime, timezone


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class SnapshotDTO(DTOBase):
    """全量快照文档 {users, equipment, logs, timestamp}

    缺失（或不是数组）的集合为 None，恢复时保持该集合不变。
    """
    users: Optional[list[dict[str, Any]]] = None
    equipment: Optional[list[dict[str, Any]]] = None
    logs: Optional[list[dict[str, Any]]] = None
    timestamp: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("users", "equipment", "logs", mode="before")
    @classmethod
    def _ignore_non_arrays(cls, v):
        return v if isinstance(v, list) else None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _lenient_timestamp(cls, v):
        if isinstance(v, datetime):
            return v
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None


class LoginRequestDTO(DTOBase):
    """登录请求，口令以摘要形式提交"""
    username: str = Field(..., description="用户名")
    passwordHash: str = Field(..., description="口令的 SHA-256 摘要")


class LoginResponseDTO(DTOBase):
    success: bool
    user: Optional[dict[str, Any]] = None


class MessageDTO(DTOBase):
    message: str
