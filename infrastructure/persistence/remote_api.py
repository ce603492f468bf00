"""Remote persistence over the equipment REST API.

Resource layout (see ``api/routes``)::

    GET/POST          /api/{users|equipment|logs}
    PUT/DELETE        /api/users/{username}
    PUT/DELETE        /api/{equipment|logs}/{id}
    POST              /api/login

The server is authoritative: ids are assigned server-side and the store
re-fetches every collection after each mutation. Network or HTTP failures are
logged and reported as ``None``/``False``.
"""
from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from application.ports.persistence import Collection, PersistencePort, Record
from core.logging_config import get_logger
from infrastructure.external.api_clients import APIError, BaseAPIClient

logger = get_logger(__name__)


class EquipmentApiClient(BaseAPIClient):
    """设备管理后端的 HTTP 客户端"""

    API_PREFIX = "api"

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        max_retries: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debug: bool = False,
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            transport=transport,
            debug=debug,
        )

    def endpoint(self, collection: Collection, key: Any = None) -> str:
        path = f"{self.API_PREFIX}/{collection.value}"
        if key is not None:
            path = f"{path}/{quote(str(key), safe='')}"
        return path

    def login_endpoint(self) -> str:
        return f"{self.API_PREFIX}/login"


class RemoteApiPersistence(PersistencePort):
    authoritative = True

    def __init__(self, client: EquipmentApiClient):
        self.client = client

    async def load_all(self, collection: Collection) -> Optional[list[Record]]:
        try:
            response = await self.client.get(self.client.endpoint(collection))
        except APIError as e:
            logger.error("remote_fetch_failed", collection=collection.value, error=str(e))
            return None
        data = response.data
        if not isinstance(data, list):
            logger.error("remote_fetch_malformed", collection=collection.value)
            return None
        return [r for r in data if isinstance(r, dict)]

    async def create(self, collection: Collection, record: Record) -> Optional[Record]:
        body = dict(record)
        if collection is not Collection.USERS:
            # 由服务端分配 id
            body.pop("id", None)
        try:
            response = await self.client.post(self.client.endpoint(collection), json_data=body)
        except APIError as e:
            logger.error("remote_create_failed", collection=collection.value, error=str(e))
            return None
        return response.data if isinstance(response.data, dict) else body

    async def replace(self, collection: Collection, key: Any, record: Record) -> bool:
        try:
            await self.client.put(self.client.endpoint(collection, key), json_data=dict(record))
        except APIError as e:
            logger.error("remote_replace_failed", collection=collection.value, key=key, error=str(e))
            return False
        return True

    async def delete(self, collection: Collection, key: Any) -> bool:
        try:
            await self.client.delete(self.client.endpoint(collection, key))
        except APIError as e:
            logger.error("remote_delete_failed", collection=collection.value, key=key, error=str(e))
            return False
        return True

    async def replace_all(self, collection: Collection, records: list[Record]) -> bool:
        """没有批量接口：逐条删除现有记录，再逐条创建"""
        existing = await self.load_all(collection)
        if existing is None:
            return False
        ok = True
        field = collection.key_field
        for record in existing:
            ok = await self.delete(collection, record.get(field)) and ok
        for record in records:
            ok = await self.create(collection, record) is not None and ok
        return ok

    async def authenticate(self, username: str, password_hash: str) -> Optional[Record]:
        try:
            response = await self.client.post(
                self.client.login_endpoint(),
                json_data={"username": username, "passwordHash": password_hash},
            )
        except APIError as e:
            logger.error("remote_login_failed", username=username, error=str(e))
            return None
        data = response.data
        if isinstance(data, dict) and data.get("success") and isinstance(data.get("user"), dict):
            return data["user"]
        return None

    async def close(self) -> None:
        await self.client.close()
