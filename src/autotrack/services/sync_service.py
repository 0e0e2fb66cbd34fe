from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from autotrack.domain.errors import ValidationError
from autotrack.domain.models import ENTITY_TYPES, entity_type, merge_row
from autotrack.domain.seed import seed_rows
from autotrack.repositories.contracts import RemoteStore
from autotrack.services.entity_cache import CacheSnapshot, EntityCache

log = logging.getLogger("autotrack.sync")

UPDATE = "update"
INSERT = "insert"


@dataclass(frozen=True)
class PendingEdit:
    seq: int
    kind: str
    entity_id: str
    row: dict[str, Any] = field(default_factory=dict)


def _parse(collection: str, rows: list[dict[str, Any]]) -> list:
    model = entity_type(collection)
    return [model.from_row(row) for row in rows]


def _seed(collection: str) -> list:
    return _parse(collection, seed_rows(collection))


def _replay(collection: str, entities: list, edits: list[PendingEdit]) -> list:
    """Re-apply unconfirmed optimistic edits on top of freshly loaded rows."""
    model = entity_type(collection)
    result = list(entities)
    for edit in edits:
        if edit.kind == UPDATE:
            result = [merge_row(e, edit.row) if e.id == edit.entity_id else e for e in result]
        elif not any(e.id == edit.entity_id for e in result):
            result.append(model.from_row(edit.row))
    return result


class SyncService:
    """Keeps the EntityCache in step with the remote store.

    Loads fall back to the built-in seed rows whenever the remote store is
    unconfigured, failing or empty. Writes are applied to the cache first and
    confirmed remotely afterwards; a rejected write is reverted by reloading
    the collection. Remote traffic is serialised per collection and edits
    still waiting for confirmation are replayed on top of every reload, so a
    reload cannot silently drop a newer local edit.

    No method raises on remote faults; they are logged and absorbed.
    """

    def __init__(self, cache: EntityCache, remote: Optional[RemoteStore] = None):
        self.cache = cache
        self.remote = remote
        self._locks = {name: asyncio.Lock() for name in ENTITY_TYPES}
        self._pending: dict[str, list[PendingEdit]] = {name: [] for name in ENTITY_TYPES}
        self._seq = itertools.count(1)

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None and self.remote.is_configured

    def pending_edits(self, collection: str) -> tuple[PendingEdit, ...]:
        return tuple(self._pending[collection])

    async def load_all(self) -> CacheSnapshot:
        await asyncio.gather(*(self.load_collection(name) for name in ENTITY_TYPES))
        return self.cache.snapshot()

    async def load_collection(self, collection: str) -> tuple:
        if not self.remote_configured:
            log.info("collection_seeded collection=%s mode=local_demo", collection)
            return self.cache.replace(collection, _seed(collection))

        async with self._locks[collection]:
            return await self._reload(collection)

    async def _reload(self, collection: str) -> tuple:
        entities = await self._fetch(collection)
        return self.cache.replace(collection, _replay(collection, entities, self._pending[collection]))

    async def _fetch(self, collection: str) -> list:
        try:
            rows = await asyncio.to_thread(self.remote.select, collection)
            entities = _parse(collection, rows)
        except Exception as e:
            # any transport, driver or row-shape fault counts as a failed read
            log.warning("remote_read_failed collection=%s error=%s fallback=seed", collection, e)
            return _seed(collection)

        if entities:
            log.info("remote_loaded collection=%s rows=%s", collection, len(entities))
            return entities

        log.info("remote_empty collection=%s action=seed", collection)
        rows = seed_rows(collection)
        if rows:
            try:
                await asyncio.to_thread(self.remote.insert, collection, rows)
            except Exception as e:
                # the local seed stands regardless
                log.error("seed_insert_failed collection=%s error=%s", collection, e)
        return _parse(collection, rows)

    async def mutate(self, collection: str, entity_id: str, partial: Mapping[str, Any]) -> bool:
        """Merge ``partial`` into the cached entity, then confirm it remotely.

        The cache is updated before the first suspension point. Returns False
        when the edit could not be applied or was reverted by a reload.
        """
        partial = dict(partial)
        try:
            found = self.cache.merge(collection, entity_id, partial)
        except ValidationError as e:
            log.warning("optimistic_update_rejected collection=%s id=%s error=%s", collection, entity_id, e)
            return False
        if not found:
            log.warning("optimistic_update_miss collection=%s id=%s", collection, entity_id)

        if not self.remote_configured:
            return True

        edit = PendingEdit(next(self._seq), UPDATE, entity_id, partial)
        return await self._reconcile(collection, edit, self.remote.update, collection, partial, entity_id)

    async def append(self, collection: str, entity) -> bool:
        """Add a new entity locally, then insert it remotely."""
        if not isinstance(entity, entity_type(collection)):
            log.warning("append_rejected collection=%s type=%s", collection, type(entity).__name__)
            return False
        if not self.cache.append(collection, entity):
            log.warning("append_duplicate collection=%s id=%s", collection, entity.id)
            return False

        if not self.remote_configured:
            return True

        row = entity.to_row()
        edit = PendingEdit(next(self._seq), INSERT, entity.id, row)
        return await self._reconcile(collection, edit, self.remote.insert, collection, [row])

    async def _reconcile(self, collection: str, edit: PendingEdit, call: Callable[..., Any], *args) -> bool:
        self._pending[collection].append(edit)
        try:
            async with self._locks[collection]:
                try:
                    await asyncio.to_thread(call, *args)
                except Exception as e:
                    # whatever the store raised, the write is unconfirmed
                    log.error(
                        "remote_write_failed collection=%s id=%s kind=%s error=%s action=reload",
                        collection, edit.entity_id, edit.kind, e,
                    )
                    self._discard(collection, edit)
                    await self._reload(collection)
                    return False
                log.info("remote_write_confirmed collection=%s id=%s kind=%s", collection, edit.entity_id, edit.kind)
                return True
        finally:
            self._discard(collection, edit)

    def _discard(self, collection: str, edit: PendingEdit) -> None:
        if edit in self._pending[collection]:
            self._pending[collection].remove(edit)
