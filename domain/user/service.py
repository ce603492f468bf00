"""
用户领域服务 - 口令摘要、注册与登录规则
"""
from typing import Any, Iterable, Mapping, Optional
import hashlib
import hmac

from .entity import User, UserRole, UserStatus


class PasswordService:
    """密码服务 - 处理口令摘要

    摘要为无盐的 SHA-256 十六进制串，与既有数据兼容；只做相等比较，不可逆。
    """

    @staticmethod
    def hash_password(password: str) -> str:
        """口令摘要（64位小写十六进制）"""
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    @staticmethod
    def verify_password(password_hash: str, stored_hash: str) -> bool:
        """比较调用方提交的摘要与已存摘要"""
        return hmac.compare_digest(password_hash.encode("utf-8"), stored_hash.encode("utf-8"))


# 默认口令 123456 的摘要，两个种子账号共用
SEED_PASSWORD_HASH = "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92"


def seed_users() -> list[User]:
    """本地存储为空时的初始账号"""
    return [
        User(
            username="admin",
            password_hash=SEED_PASSWORD_HASH,
            role=UserRole.ADMIN,
            status=UserStatus.ACTIVE,
            fullname="系统管理员",
        ),
        User(
            username="worker",
            password_hash=SEED_PASSWORD_HASH,
            role=UserRole.WORKER,
            status=UserStatus.ACTIVE,
            fullname="普通员工",
        ),
    ]


class UserDomainService:
    """用户领域服务 - 注册与认证规则"""

    def __init__(self):
        self.password_service = PasswordService()

    @staticmethod
    def find(users: Iterable[User], username: str) -> Optional[User]:
        return next((u for u in users if u.username == username), None)

    def prepare_registration(self, data: Mapping[str, Any] | User) -> User:
        """注册新用户：状态强制为待审核，角色强制为普通员工"""
        user = User.from_dict(data.to_dict()) if isinstance(data, User) else User.from_dict(data)
        user.status = UserStatus.PENDING
        user.role = UserRole.WORKER
        return user

    def authenticate(self, users: Iterable[User], username: str, password_hash: str) -> Optional[User]:
        """用户名、摘要均匹配且已审核通过才算认证成功。

        不区分“口令错误”和“未审核”，避免暴露用户名是否存在。
        """
        user = self.find(users, username)
        if user is None:
            return None
        if not self.password_service.verify_password(password_hash, user.password_hash):
            return None
        if not user.is_active:
            return None
        return user
