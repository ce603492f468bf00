"""领域层业务异常定义，供领域与基础设施使用。

实体仓库（EntityStore）对预期内的情况（用户名重复、凭据错误、快照无法解析）
一律返回布尔值/可选值，不抛异常；这里的异常用于调用方的编程错误，
以及参考后端把“未找到”等情况映射为 HTTP 错误。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class UserNotFoundException(BusinessException):
    def __init__(self, username: Optional[str] = None):
        details = {"username": username} if username else None
        super().__init__(
            code=BusinessCode.USER_NOT_FOUND,
            message="User not found",
            error_type="UserNotFound",
            details=details,
        )


class UsernameAlreadyExistsException(BusinessException):
    def __init__(self, username: str):
        super().__init__(
            code=BusinessCode.USER_ALREADY_EXISTS,
            message=f"Username {username} already exists",
            error_type="UsernameAlreadyExists",
            details={"username": username},
            field="username",
        )


class EquipmentNotFoundException(BusinessException):
    def __init__(self, eq_id: Optional[int] = None):
        details = {"eq_id": eq_id} if eq_id is not None else None
        super().__init__(
            code=BusinessCode.EQUIPMENT_NOT_FOUND,
            message="Equipment not found",
            error_type="EquipmentNotFound",
            details=details,
        )


class MaintenanceLogNotFoundException(BusinessException):
    def __init__(self, log_id: Optional[int] = None):
        details = {"log_id": log_id} if log_id is not None else None
        super().__init__(
            code=BusinessCode.LOG_NOT_FOUND,
            message="Maintenance log not found",
            error_type="MaintenanceLogNotFound",
            details=details,
        )


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )
