from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from autotrack.config import RemoteSettings
from autotrack.repositories.contracts import RemoteStore, SessionStore
from autotrack.repositories.remote_store import RestRemoteStore
from autotrack.repositories.session_store import SqliteSessionStore
from autotrack.services.auth_service import AuthService
from autotrack.services.entity_cache import CacheSnapshot, EntityCache
from autotrack.services.insights_service import InsightsGenerator, InsightsService
from autotrack.services.reporting_service import ReportingService
from autotrack.services.sync_service import SyncService


@dataclass(frozen=True)
class AppContainer:
    cache: EntityCache
    sessions: SessionStore
    remote: Optional[RemoteStore]
    sync: SyncService
    auth: AuthService
    reporting: ReportingService
    insights: InsightsService

    async def start(self) -> CacheSnapshot:
        """Load every collection; the auth service re-syncs its session as users arrive."""
        return await self.sync.load_all()


def build_container(
    session_db_path: Path | str,
    settings: RemoteSettings | None = None,
    remote: RemoteStore | None = None,
    sessions: SessionStore | None = None,
    insights_generator: InsightsGenerator | None = None,
) -> AppContainer:
    if sessions is None:
        store = SqliteSessionStore(session_db_path)
        store.init_db()
        sessions = store

    if remote is None:
        settings = settings or RemoteSettings.from_env()
        remote = RestRemoteStore(settings) if settings.is_configured else None

    cache = EntityCache()
    sync = SyncService(cache, remote)
    auth = AuthService(cache, sync, sessions)
    reporting = ReportingService(cache, auth)
    insights = InsightsService(cache, auth, insights_generator)

    return AppContainer(
        cache=cache,
        sessions=sessions,
        remote=remote,
        sync=sync,
        auth=auth,
        reporting=reporting,
        insights=insights,
    )
