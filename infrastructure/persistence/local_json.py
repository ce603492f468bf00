"""Local durable persistence: one JSON document per collection.

Layout under ``base_path``::

    users.json       [User, ...]
    equipment.json   [Equipment, ...]
    logs.json        [Log, ...]

Every mutation rewrites the whole document of the affected collection.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os

from application.ports.persistence import Collection, PersistencePort, Record
from core.logging_config import get_logger
from domain.common.values import coerce_int
from domain.user.service import seed_users
from .exceptions import (
    MalformedDocumentError,
    PersistenceError,
    PersistenceUnavailableError,
)

logger = get_logger(__name__)


class LocalJsonPersistence(PersistencePort):
    """Write-through mirror of the store's collections on the local disk."""

    authoritative = False

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._mirror: dict[Collection, list[Record]] = {}

    def document_path(self, collection: Collection) -> Path:
        return self.base_path / f"{collection.value}.json"

    async def load_all(self, collection: Collection) -> Optional[list[Record]]:
        try:
            records = await self._read(collection)
        except PersistenceError as e:
            # 读取失败不影响启动，按空集合处理
            logger.error("persistence_read_failed", collection=collection.value, error=str(e))
            records = []
        self._mirror[collection] = [self._with_normalised_key(collection, r) for r in records]
        records = self._mirror[collection]
        logger.debug("persistence_loaded", collection=collection.value, count=len(records))
        return [dict(r) for r in records]

    async def create(self, collection: Collection, record: Record) -> Optional[Record]:
        records = await self._records(collection)
        stored = dict(record)
        records.append(stored)
        if not await self._flush(collection):
            return None
        return dict(stored)

    async def replace(self, collection: Collection, key: Any, record: Record) -> bool:
        records = await self._records(collection)
        field = collection.key_field
        for idx, existing in enumerate(records):
            if existing.get(field) == key:
                records[idx] = dict(record)
                return await self._flush(collection)
        logger.debug("persistence_replace_missing", collection=collection.value, key=key)
        return False

    async def delete(self, collection: Collection, key: Any) -> bool:
        records = await self._records(collection)
        field = collection.key_field
        remaining = [r for r in records if r.get(field) != key]
        if len(remaining) == len(records):
            return False
        self._mirror[collection] = remaining
        return await self._flush(collection)

    async def replace_all(self, collection: Collection, records: list[Record]) -> bool:
        self._mirror[collection] = [dict(r) for r in records]
        return await self._flush(collection)

    @staticmethod
    def _with_normalised_key(collection: Collection, record: Record) -> Record:
        # 与实体的取值规则一致，否则按主键的替换/删除会匹配不到
        field = collection.key_field
        if collection is Collection.USERS:
            value = str(record.get(field) or "")
        else:
            value = coerce_int(record.get(field), 0)
        return {**record, field: value}

    async def _records(self, collection: Collection) -> list[Record]:
        if collection not in self._mirror:
            await self.load_all(collection)
        return self._mirror[collection]

    async def _read(self, collection: Collection) -> list[Record]:
        path = self.document_path(collection)
        if not path.exists():
            if collection is Collection.USERS:
                return [u.to_dict() for u in seed_users()]
            return []
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                text = await f.read()
        except OSError as e:
            raise PersistenceUnavailableError(f"Failed to read {path}: {e}") from e
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedDocumentError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise MalformedDocumentError(f"{path} is not a JSON array of records")
        return data

    async def _flush(self, collection: Collection) -> bool:
        path = self.document_path(collection)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            payload = json.dumps(self._mirror[collection], ensure_ascii=False, indent=2)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("persistence_write_failed", collection=collection.value, error=str(e))
            return False
        return True
