from __future__ import annotations

import logging
from typing import Any, Sequence

import requests

from autotrack.config import RemoteSettings
from autotrack.domain.errors import RemoteStoreError

log = logging.getLogger("autotrack.sync")


class RestRemoteStore:
    """Row store behind a PostgREST-style endpoint (``<url>/rest/v1/<collection>``)."""

    def __init__(self, settings: RemoteSettings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def _endpoint(self, collection: str) -> str:
        return f"{self.settings.url.rstrip('/')}/rest/v1/{collection}"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.settings.key,
            "Authorization": f"Bearer {self.settings.key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    def _request(self, method: str, collection: str, **kwargs) -> requests.Response:
        if not self.is_configured:
            raise RemoteStoreError("Remote store is not configured.")
        try:
            r = self.session.request(
                method,
                self._endpoint(collection),
                headers=self._headers(),
                timeout=self.settings.timeout_seconds,
                **kwargs,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise RemoteStoreError(f"{method} {collection} failed: {e}") from e
        return r

    def select(self, collection: str) -> list[dict[str, Any]]:
        r = self._request("GET", collection, params={"select": "*"})
        try:
            data = r.json()
        except ValueError as e:
            raise RemoteStoreError(f"Malformed response for {collection}: {e}") from e
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise RemoteStoreError(f"Expected a list of rows for {collection}. Raw: {data!r}")
        return data

    def insert(self, collection: str, rows: Sequence[dict[str, Any]]) -> None:
        self._request("POST", collection, json=list(rows))
        log.info("remote_insert collection=%s rows=%s", collection, len(rows))

    def update(self, collection: str, partial: dict[str, Any], match_id: str) -> None:
        self._request("PATCH", collection, params={"id": f"eq.{match_id}"}, json=dict(partial))
        log.info("remote_update collection=%s id=%s fields=%s", collection, match_id, sorted(partial))
