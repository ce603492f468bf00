"""
用户领域实体 - 包含核心业务规则
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from domain.common.values import coerce_enum, optional_str


class UserRole(str, Enum):
    ADMIN = "admin"
    WORKER = "worker"


class UserStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"


# 持久化/接口使用 camelCase 的 passwordHash
_WIRE_TO_ATTR = {"passwordHash": "password_hash", "password_hash": "password_hash"}
_PROFILE_FIELDS = ("fullname", "team", "contact")


@dataclass
class User:
    """用户实体 - 以 username 为唯一键"""

    username: str
    password_hash: str
    role: UserRole = UserRole.WORKER
    status: UserStatus = UserStatus.PENDING
    fullname: Optional[str] = None
    team: Optional[str] = None
    contact: Optional[str] = None

    def __post_init__(self):
        self.role = coerce_enum(UserRole, self.role, UserRole.WORKER)
        self.status = coerce_enum(UserStatus, self.status, UserStatus.PENDING)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def approve(self) -> None:
        """业务规则：管理员审核通过"""
        self.status = UserStatus.ACTIVE

    def toggle_role(self) -> None:
        self.role = UserRole.WORKER if self.is_admin else UserRole.ADMIN

    def apply_updates(self, updates: Mapping[str, Any]) -> list[str]:
        """合并部分字段，返回实际变更的字段名。username 是主键，不参与合并。"""
        changed: list[str] = []
        for key, value in updates.items():
            if key in _WIRE_TO_ATTR:
                self.password_hash = str(value)
                changed.append("password_hash")
            elif key == "role":
                self.role = coerce_enum(UserRole, value, self.role)
                changed.append(key)
            elif key == "status":
                self.status = coerce_enum(UserStatus, value, self.status)
                changed.append(key)
            elif key in _PROFILE_FIELDS:
                setattr(self, key, optional_str(value))
                changed.append(key)
        return changed

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        return cls(
            username=str(data.get("username") or ""),
            password_hash=str(data.get("passwordHash") or data.get("password_hash") or ""),
            role=data.get("role", UserRole.WORKER),
            status=data.get("status", UserStatus.PENDING),
            fullname=optional_str(data.get("fullname")),
            team=optional_str(data.get("team")),
            contact=optional_str(data.get("contact")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "username": self.username,
            "passwordHash": self.password_hash,
            "role": self.role.value,
            "status": self.status.value,
        }
        for name in _PROFILE_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data
