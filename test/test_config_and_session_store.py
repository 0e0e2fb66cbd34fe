from pathlib import Path

import pytest

from autotrack.config import RemoteSettings
from autotrack.domain.errors import SessionStoreError
from autotrack.repositories.session_store import SqliteSessionStore


def test_remote_settings_require_both_values():
    assert RemoteSettings.from_env({}).is_configured is False
    assert RemoteSettings.from_env({"AUTOTRACK_REMOTE_URL": "https://a.example.co"}).is_configured is False
    assert RemoteSettings.from_env({"AUTOTRACK_REMOTE_URL": " ", "AUTOTRACK_REMOTE_KEY": "k"}).is_configured is False
    assert RemoteSettings.from_env(
        {"AUTOTRACK_REMOTE_URL": "https://a.example.co", "AUTOTRACK_REMOTE_KEY": "k"}
    ).is_configured is True


def test_remote_settings_fall_back_to_supabase_names():
    settings = RemoteSettings.from_env({"SUPABASE_URL": "https://b.example.co", "SUPABASE_ANON_KEY": "anon"})

    assert settings.url == "https://b.example.co"
    assert settings.key == "anon"
    assert settings.is_configured is True


def test_session_store_survives_new_instances(tmp_path: Path):
    db = tmp_path / "session.db"
    store = SqliteSessionStore(db)
    store.init_db()
    store.set("autotrack_user_session", '{"id": "u1"}')
    store.set("autotrack_user_session", '{"id": "u2"}')

    reopened = SqliteSessionStore(db)
    reopened.init_db()
    assert reopened.get("autotrack_user_session") == '{"id": "u2"}'

    reopened.remove("autotrack_user_session")
    reopened.remove("autotrack_user_session")
    assert store.get("autotrack_user_session") is None


def test_session_store_wraps_sqlite_errors(tmp_path: Path):
    store = SqliteSessionStore(tmp_path / "missing_table.db")

    with pytest.raises(SessionStoreError):
        store.get("anything")
