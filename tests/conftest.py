"""Shared fixtures: every test gets its own data directory under tmp_path."""
import pytest
import pytest_asyncio

from application.services.entity_store import EntityStore
from domain.user.service import SEED_PASSWORD_HASH
from infrastructure.persistence import FileSessionStore, LocalJsonPersistence


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def local_adapter(data_dir):
    return LocalJsonPersistence(data_dir)


@pytest.fixture
def session_store(data_dir):
    return FileSessionStore(data_dir / "session.json")


@pytest_asyncio.fixture
async def store(local_adapter, session_store):
    s = EntityStore(local_adapter, session_store)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def seed_digest():
    return SEED_PASSWORD_HASH


@pytest_asyncio.fixture
async def backend(tmp_path):
    """Reference backend app over its own local store; no lifespan, no network."""
    from api.dependencies import get_store
    from main import create_app

    server_store = EntityStore(LocalJsonPersistence(tmp_path / "server"))
    await server_store.initialize()
    app = create_app()
    app.dependency_overrides[get_store] = lambda: server_store
    yield app, server_store
    app.dependency_overrides.clear()
