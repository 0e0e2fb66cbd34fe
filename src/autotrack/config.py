from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging
import os
import sys

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    session_db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class RemoteSettings:
    url: str = ""
    key: str = ""
    timeout_seconds: float = 10.0

    @property
    def is_configured(self) -> bool:
        return bool(self.url.strip() and self.key.strip())

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "RemoteSettings":
        env = os.environ if environ is None else environ
        url = env.get("AUTOTRACK_REMOTE_URL") or env.get("SUPABASE_URL") or ""
        key = env.get("AUTOTRACK_REMOTE_KEY") or env.get("SUPABASE_ANON_KEY") or ""
        settings = cls(url=url.strip(), key=key.strip())
        if not settings.is_configured:
            log.info("remote_credentials_missing mode=local_demo")
        return settings


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "AutoTrack") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    session_db = base / "session.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, session_db_path=session_db, logs_dir=logs)
