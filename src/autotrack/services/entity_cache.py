from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from autotrack.domain.models import (
    CASH_FLOWS,
    ENTITY_TYPES,
    PRODUCTS,
    TRANSACTIONS,
    USERS,
    CashFlow,
    Identity,
    Product,
    Transaction,
    merge_row,
)

Listener = Callable[[str, tuple], None]


@dataclass(frozen=True)
class CacheSnapshot:
    users: tuple[Identity, ...]
    transactions: tuple[Transaction, ...]
    products: tuple[Product, ...]
    cash_flows: tuple[CashFlow, ...]


class EntityCache:
    """In-memory collections, each held as an immutable tuple.

    Writers swap whole tuples, so a reader holding a snapshot never sees a
    collection half way through a merge.
    """

    def __init__(self):
        self._collections: dict[str, tuple] = {name: () for name in ENTITY_TYPES}
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def get(self, collection: str) -> tuple:
        return self._collections[collection]

    def find(self, collection: str, entity_id: str):
        for entity in self._collections[collection]:
            if entity.id == entity_id:
                return entity
        return None

    def snapshot(self) -> CacheSnapshot:
        return CacheSnapshot(
            users=self._collections[USERS],
            transactions=self._collections[TRANSACTIONS],
            products=self._collections[PRODUCTS],
            cash_flows=self._collections[CASH_FLOWS],
        )

    def replace(self, collection: str, entities: Iterable) -> tuple:
        items = tuple(entities)
        self._set(collection, items)
        return items

    def merge(self, collection: str, entity_id: str, partial: Mapping[str, Any]) -> bool:
        found = False
        merged = []
        for entity in self._collections[collection]:
            if entity.id == entity_id:
                entity = merge_row(entity, partial)
                found = True
            merged.append(entity)
        if found:
            self._set(collection, tuple(merged))
        return found

    def append(self, collection: str, entity) -> bool:
        if self.find(collection, entity.id) is not None:
            return False
        self._set(collection, self._collections[collection] + (entity,))
        return True

    def _set(self, collection: str, items: tuple) -> None:
        self._collections[collection] = items
        for listener in list(self._listeners):
            listener(collection, items)
