import pytest

from core.config import PersistenceSettings, Settings
from infrastructure.persistence import (
    ConfigurationError,
    FileSessionStore,
    LocalJsonPersistence,
    RemoteApiPersistence,
    create_adapter,
    create_session_store,
)


def test_local_adapter(tmp_path):
    adapter = create_adapter(PersistenceSettings(type="local", local_base_path=str(tmp_path)))
    assert isinstance(adapter, LocalJsonPersistence)
    assert not adapter.authoritative


@pytest.mark.asyncio
async def test_remote_adapter():
    adapter = create_adapter(PersistenceSettings(type="remote", remote_base_url="http://ledger.local/"))
    assert isinstance(adapter, RemoteApiPersistence)
    assert adapter.authoritative
    assert adapter.client.base_url == "http://ledger.local"
    await adapter.close()


def test_unknown_type_rejected():
    with pytest.raises(ConfigurationError):
        create_adapter(PersistenceSettings(type="sqlite"))


def test_session_store_path(tmp_path):
    session = create_session_store(PersistenceSettings(local_base_path=str(tmp_path), session_file="s.json"))
    assert isinstance(session, FileSessionStore)
    assert session.path == (tmp_path / "s.json").resolve()


def test_nested_env_settings(monkeypatch):
    monkeypatch.setenv("PERSISTENCE__TYPE", "remote")
    monkeypatch.setenv("PERSISTENCE__REMOTE_MAX_RETRIES", "2")
    monkeypatch.setenv("INSPECTION_ALERT_DAYS", "30")
    monkeypatch.setenv("CORS_ORIGINS", '["http://a.test", "http://b.test"]')
    s = Settings()
    assert s.persistence.type == "remote"
    assert s.persistence.remote_max_retries == 2
    assert s.INSPECTION_ALERT_DAYS == 30
    assert s.CORS_ORIGINS == ["http://a.test", "http://b.test"]
