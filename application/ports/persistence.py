"""Application-owned persistence port (hexagonal architecture).

The entity store talks to storage only through these two abstractions, so the
local JSON files and the remote REST API are interchangeable back-ends.
Implementations catch their own I/O failures: a failed write returns
``False``/``None`` and a failed read returns ``None``; nothing is raised to
the store.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


class Collection(str, Enum):
    USERS = "users"
    EQUIPMENT = "equipment"
    LOGS = "logs"

    @property
    def key_field(self) -> str:
        """记录主键字段：用户按用户名，其余按 id"""
        return "username" if self is Collection.USERS else "id"


Record = dict[str, Any]


class PersistencePort(ABC):
    """持久化适配器抽象接口 - 只定义能做什么，不管怎么做"""

    # 为 True 时后端是权威数据源：写入后由 store 全量重新拉取，
    # ID 由后端分配，登录也交给后端校验
    authoritative: bool = False

    @abstractmethod
    async def load_all(self, collection: Collection) -> Optional[list[Record]]:
        """读取整个集合；后端不可用时返回 None"""
        pass

    @abstractmethod
    async def create(self, collection: Collection, record: Record) -> Optional[Record]:
        """新增一条记录，返回后端保存的记录"""
        pass

    @abstractmethod
    async def replace(self, collection: Collection, key: Any, record: Record) -> bool:
        """按主键整条替换"""
        pass

    @abstractmethod
    async def delete(self, collection: Collection, key: Any) -> bool:
        """按主键删除"""
        pass

    @abstractmethod
    async def replace_all(self, collection: Collection, records: list[Record]) -> bool:
        """整个集合替换（覆盖导入、快照恢复）"""
        pass

    async def authenticate(self, username: str, password_hash: str) -> Optional[Record]:
        """由后端校验凭据；非权威后端由 store 自行校验，这里不参与"""
        return None

    async def close(self) -> None:
        return None


@runtime_checkable
class SessionPort(Protocol):
    """当前登录用户的持久化（跨重启保持登录）"""

    async def load(self) -> Optional[Record]: ...

    async def save(self, user: Record) -> None: ...

    async def clear(self) -> None: ...
