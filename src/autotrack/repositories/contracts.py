from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence


class RemoteStore(Protocol):
    @property
    def is_configured(self) -> bool: ...
    def select(self, collection: str) -> list[dict[str, Any]]: ...
    def insert(self, collection: str, rows: Sequence[dict[str, Any]]) -> None: ...
    def update(self, collection: str, partial: dict[str, Any], match_id: str) -> None: ...


class SessionStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...
