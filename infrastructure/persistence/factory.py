"""Persistence adapter factory with registry pattern."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import httpx

from application.ports.persistence import PersistencePort
from core.config import PersistenceSettings, settings
from core.logging_config import get_logger
from .exceptions import ConfigurationError
from .local_json import LocalJsonPersistence
from .remote_api import EquipmentApiClient, RemoteApiPersistence
from .session_file import FileSessionStore

logger = get_logger(__name__)


class PersistenceType(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


AdapterBuilder = Callable[[PersistenceSettings], PersistencePort]

_adapter_registry: dict[PersistenceType, AdapterBuilder] = {}


def register_adapter(persistence_type: PersistenceType, builder: AdapterBuilder) -> None:
    _adapter_registry[persistence_type] = builder


def build_local_adapter(config: PersistenceSettings) -> PersistencePort:
    return LocalJsonPersistence(config.local_base_path)


def build_remote_adapter(
    config: PersistenceSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PersistencePort:
    client = EquipmentApiClient(
        base_url=config.remote_base_url,
        timeout=config.remote_timeout,
        max_retries=config.remote_max_retries,
        transport=transport,
    )
    return RemoteApiPersistence(client)


register_adapter(PersistenceType.LOCAL, build_local_adapter)
register_adapter(PersistenceType.REMOTE, build_remote_adapter)


def create_adapter(config: Optional[PersistenceSettings] = None) -> PersistencePort:
    """根据配置创建持久化适配器

    Raises:
        ConfigurationError: 未注册的持久化类型
    """
    config = config or settings.persistence
    try:
        persistence_type = PersistenceType(config.type)
    except ValueError:
        raise ConfigurationError(
            f"Persistence type '{config.type}' not registered. "
            f"Available: {[t.value for t in _adapter_registry]}"
        ) from None
    adapter = _adapter_registry[persistence_type](config)
    logger.info("persistence_adapter_created", type=persistence_type.value)
    return adapter


def create_session_store(config: Optional[PersistenceSettings] = None) -> FileSessionStore:
    config = config or settings.persistence
    return FileSessionStore(Path(config.local_base_path) / config.session_file)
