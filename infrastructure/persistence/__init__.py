from .exceptions import (
    PersistenceError,
    PersistenceUnavailableError,
    MalformedDocumentError,
    ConfigurationError,
)
from .local_json import LocalJsonPersistence
from .remote_api import EquipmentApiClient, RemoteApiPersistence
from .session_file import FileSessionStore
from .factory import (
    PersistenceType,
    build_local_adapter,
    build_remote_adapter,
    create_adapter,
    create_session_store,
    register_adapter,
)

__all__ = [
    "PersistenceError",
    "PersistenceUnavailableError",
    "MalformedDocumentError",
    "ConfigurationError",
    "LocalJsonPersistence",
    "EquipmentApiClient",
    "RemoteApiPersistence",
    "FileSessionStore",
    "PersistenceType",
    "build_local_adapter",
    "build_remote_adapter",
    "create_adapter",
    "create_session_store",
    "register_adapter",
]
