from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from autotrack.domain import permissions
from autotrack.domain.errors import AuthorizationError, SessionStoreError
from autotrack.domain.models import USERS, Identity
from autotrack.repositories.contracts import SessionStore
from autotrack.services.entity_cache import EntityCache
from autotrack.services.sync_service import SyncService

log = logging.getLogger("autotrack.auth")

SESSION_KEY = "autotrack_user_session"


def _parse_session(raw: str) -> Identity:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Session payload must be an object, got {type(data).__name__}")
    for key in ("id", "name", "role"):
        if not isinstance(data.get(key), str) or not data[key]:
            raise ValueError(f"Session payload missing '{key}'")
    return Identity.from_row(data)


class AuthService:
    def __init__(self, cache: EntityCache, sync: SyncService, sessions: SessionStore):
        self.cache = cache
        self.sync = sync
        self.sessions = sessions
        self._user: Optional[Identity] = None

        self._restore()
        cache.subscribe(self._on_collection_changed)

    @property
    def current_user(self) -> Optional[Identity]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def all_users(self) -> tuple[Identity, ...]:
        return self.cache.get(USERS)

    def _restore(self) -> None:
        try:
            raw = self.sessions.get(SESSION_KEY)
        except SessionStoreError as e:
            log.warning("session_restore_failed error=%s", e)
            return
        if raw is None:
            return

        try:
            self._user = _parse_session(raw)
        except (ValueError, KeyError, TypeError) as e:
            log.warning("session_restore_corrupt error=%s action=sign_out", e)
            self._forget()
            return

        # a stale snapshot is fine until the users collection is loaded
        fresh = self.cache.find(USERS, self._user.id)
        if fresh is not None:
            self._user = fresh
        log.info("session_restored user_id=%s", self._user.id)

    def _on_collection_changed(self, collection: str, items: tuple) -> None:
        if collection != USERS or self._user is None:
            return
        for candidate in items:
            if candidate.id == self._user.id:
                self._user = candidate
                return
        # transient lookup miss: keep the cached identity, no forced logout
        log.info("session_resync_miss user_id=%s", self._user.id)

    def login(self, user_id: str, password: Optional[str] = None) -> bool:
        user = self.cache.find(USERS, user_id)
        if user is None:
            log.info("login_rejected user_id=%s reason=unknown_user", user_id)
            return False
        if user.password and user.password != password:
            log.info("login_rejected user_id=%s reason=bad_password", user_id)
            return False

        self._user = user
        self._persist(user)
        log.info("login_ok user_id=%s role=%s", user.id, user.role)
        return True

    def logout(self) -> None:
        if self._user is not None:
            log.info("logout user_id=%s", self._user.id)
        self._user = None
        self._forget()

    async def update_identity(self, user_id: str, partial: Mapping[str, Any]) -> bool:
        return await self.sync.mutate(USERS, user_id, partial)

    def can(self, user: Optional[Identity], action: str) -> bool:
        return permissions.can(user, action)

    def require_action(self, user: Optional[Identity], action: str) -> None:
        if not self.can(user, action):
            role = user.role if user is not None else "anonymous"
            raise AuthorizationError(f"Role '{role}' is not allowed to perform '{action}'.")

    def _persist(self, user: Identity) -> None:
        # the secret never goes to disk
        snapshot = {k: v for k, v in user.to_row().items() if k != "password"}
        try:
            self.sessions.set(SESSION_KEY, json.dumps(snapshot, ensure_ascii=False))
        except SessionStoreError as e:
            log.error("session_persist_failed user_id=%s error=%s", user.id, e)

    def _forget(self) -> None:
        try:
            self.sessions.remove(SESSION_KEY)
        except SessionStoreError as e:
            log.error("session_clear_failed error=%s", e)
