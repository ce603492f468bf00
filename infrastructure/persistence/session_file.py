"""Current-session marker kept in a small JSON file next to the data."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from application.ports.persistence import Record
from core.logging_config import get_logger

logger = get_logger(__name__)


class FileSessionStore:
    """SessionPort 的文件实现；读写失败只记日志"""

    def __init__(self, path: str | Path):
        self.path = Path(path).resolve()

    async def load(self) -> Optional[Record]:
        if not self.path.exists():
            return None
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, ValueError) as e:
            logger.warning("session_read_failed", path=str(self.path), error=str(e))
            return None
        return data if isinstance(data, dict) else None

    async def save(self, user: Record) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(user, ensure_ascii=False))
        except OSError as e:
            logger.error("session_write_failed", path=str(self.path), error=str(e))

    async def clear(self) -> None:
        try:
            if self.path.exists():
                await aiofiles.os.remove(self.path)
        except OSError as e:
            logger.error("session_clear_failed", path=str(self.path), error=str(e))
