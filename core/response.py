"""
统一错误响应格式

资源接口直接返回记录本身（远程持久化客户端按原样解析），
只有错误才包装成统一结构。
"""
from typing import Any, Optional
from pydantic import BaseModel, Field, field_serializer
from datetime import datetime, timezone


class ErrorDetail(BaseModel):
    """错误详情"""
    type: str
    details: Optional[dict] = None
    field: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer('timestamp')
    def serialize_timestamp(self, timestamp: datetime) -> str:
        """序列化时间戳为 UTC ISO8601，统一使用 Z 结尾"""
        ts = timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)
        return ts.isoformat().replace("+00:00", "Z")


class ErrorResponse(BaseModel):
    code: int
    message: str
    data: Any = None
    error: ErrorDetail


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None
) -> ErrorResponse:
    """
    创建错误响应

    Args:
        code: 业务状态码
        message: 错误消息
        error_type: 错误类型
        details: 错误详情
        field: 错误字段
        request_id: 请求ID
    """
    return ErrorResponse(
        code=code,
        message=message,
        error=ErrorDetail(
            type=error_type,
            details=details,
            field=field,
            request_id=request_id
        )
    )
