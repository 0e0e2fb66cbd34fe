import asyncio
import json

import pytest

from conftest import FakeRemoteStore, MemorySessionStore

from autotrack.domain.errors import AuthorizationError, SessionStoreError
from autotrack.domain.models import USERS, Identity
from autotrack.services.auth_service import SESSION_KEY, AuthService
from autotrack.services.entity_cache import EntityCache
from autotrack.services.sync_service import SyncService

USERS_ROWS = [
    {"id": "u1", "name": "Admin", "role": "admin", "password": "secret"},
    {"id": "u2", "name": "Manager", "role": "manager", "password": ""},
    {"id": "u3", "name": "Mechanic", "role": "mechanic"},
]


def _build(remote=None, sessions=None):
    cache = EntityCache()
    sync = SyncService(cache, remote)
    sessions = sessions if sessions is not None else MemorySessionStore()
    auth = AuthService(cache, sync, sessions)
    return cache, sync, auth, sessions


def _loaded(rows=USERS_ROWS, sessions=None):
    remote = FakeRemoteStore({USERS: rows})
    cache, sync, auth, sessions = _build(remote, sessions)
    asyncio.run(sync.load_collection(USERS))
    return remote, cache, sync, auth, sessions


def test_login_unknown_user_fails_and_keeps_state():
    _, _, _, auth, sessions = _loaded()

    assert auth.login("nobody", "secret") is False
    assert auth.current_user is None
    assert sessions.data == {}


@pytest.mark.parametrize(
    "user_id,password,expected",
    [
        ("u1", "secret", True),
        ("u1", "wrong", False),
        ("u1", None, False),
        ("u2", None, True),
        ("u2", "anything", True),
        ("u3", None, True),
        ("u3", "anything", True),
    ],
)
def test_login_password_rules(user_id, password, expected):
    _, _, _, auth, sessions = _loaded()

    assert auth.login(user_id, password) is expected
    assert auth.is_authenticated is expected
    assert (SESSION_KEY in sessions.data) is expected


def test_failed_login_does_not_replace_existing_session():
    _, _, _, auth, _ = _loaded()
    auth.login("u3")

    assert auth.login("u1", "wrong") is False
    assert auth.current_user.id == "u3"


def test_login_persists_snapshot_without_password():
    _, _, _, auth, sessions = _loaded()
    auth.login("u1", "secret")

    stored = json.loads(sessions.data[SESSION_KEY])
    assert stored == {"id": "u1", "name": "Admin", "role": "admin"}


def test_logout_is_idempotent():
    _, _, _, auth, sessions = _loaded()
    auth.login("u3")

    auth.logout()
    auth.logout()

    assert auth.current_user is None
    assert SESSION_KEY not in sessions.data


def test_session_is_restored_and_resynced_after_load():
    sessions = MemorySessionStore({SESSION_KEY: json.dumps({"id": "u2", "name": "Old Name", "role": "manager"})})
    remote = FakeRemoteStore({USERS: USERS_ROWS})
    _, sync, auth, _ = _build(remote, sessions)

    assert auth.current_user == Identity(id="u2", name="Old Name", role="manager")

    asyncio.run(sync.load_collection(USERS))

    assert auth.current_user.name == "Manager"


def test_resync_replaces_session_with_fresh_record():
    remote, _, sync, auth, _ = _loaded()
    auth.login("u3")
    remote.rows[USERS][2].update({"name": "Senior Mechanic", "role": "manager"})

    asyncio.run(sync.load_collection(USERS))

    assert auth.current_user == Identity(id="u3", name="Senior Mechanic", role="manager")


def test_resync_miss_keeps_cached_identity():
    remote, _, sync, auth, _ = _loaded()
    auth.login("u3")
    remote.rows[USERS] = [row for row in remote.rows[USERS] if row["id"] != "u3"]

    asyncio.run(sync.load_collection(USERS))

    assert auth.current_user is not None
    assert auth.current_user.id == "u3"


@pytest.mark.parametrize(
    "raw",
    ["{not json", "[1, 2]", json.dumps({"id": "u1"}), json.dumps({"id": 7, "name": "x", "role": "admin"}), "null"],
)
def test_corrupt_session_is_discarded(raw):
    sessions = MemorySessionStore({SESSION_KEY: raw})
    _, _, auth, _ = _build(None, sessions)

    assert auth.current_user is None
    assert SESSION_KEY not in sessions.data


class BrokenSessionStore:
    def get(self, key):
        raise SessionStoreError("disk gone")

    def set(self, key, value):
        raise SessionStoreError("disk gone")

    def remove(self, key):
        raise SessionStoreError("disk gone")


def test_session_store_faults_never_escape():
    cache, sync, auth, _ = _build(None, BrokenSessionStore())
    asyncio.run(sync.load_collection(USERS))

    assert auth.login("u3") is True
    auth.logout()
    assert auth.current_user is None


def test_update_identity_refreshes_session_optimistically():
    _, _, _, auth, _ = _loaded()
    auth.login("u2")

    assert asyncio.run(auth.update_identity("u2", {"name": "Shop Boss"})) is True
    assert auth.current_user.name == "Shop Boss"


def test_update_identity_failure_reverts_session_via_reload():
    remote, _, _, auth, _ = _loaded()
    auth.login("u2")
    remote.fail_update.add(USERS)

    assert asyncio.run(auth.update_identity("u2", {"name": "Shop Boss"})) is False
    assert auth.current_user.name == "Manager"


def test_permission_matrix():
    _, _, _, auth, _ = _loaded()
    admin = Identity(id="u1", name="Admin", role="admin")
    mechanic = Identity(id="u3", name="Mechanic", role="mechanic")

    assert auth.can(admin, "request_insights") is True
    assert auth.can(mechanic, "request_insights") is False
    assert auth.can(None, "view_profit") is False
    assert auth.can(admin, "unknown_action") is False
    with pytest.raises(AuthorizationError, match="mechanic"):
        auth.require_action(mechanic, "view_profit")
