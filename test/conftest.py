import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from autotrack.domain.errors import RemoteStoreError  # noqa: E402

NOW = datetime(2026, 10, 19, 15, 0, 0)


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def tx_row(tx_id, amount, profit=0.0, when=NOW, created_by="u1", **extra):
    row = {
        "id": tx_id,
        "timestamp": ms(when),
        "totalAmount": amount,
        "productTotal": extra.pop("productTotal", 0.0),
        "serviceTotal": extra.pop("serviceTotal", 0.0),
        "totalProfit": profit,
        "createdBy": created_by,
    }
    row.update(extra)
    return row


class FakeRemoteStore:
    def __init__(self, rows=None, configured=True):
        self.is_configured = configured
        self.rows = {name: [dict(r) for r in items] for name, items in (rows or {}).items()}
        self.fail_select = set()
        self.fail_insert = set()
        self.fail_update = set()
        # (operation, collection) -> exception raised instead of a RemoteStoreError
        self.faults = {}
        self.calls = []
        self.on_update = None

    def _fault(self, op, collection):
        fault = self.faults.get((op, collection))
        if fault is not None:
            raise fault

    def select(self, collection):
        self.calls.append(("select", collection))
        self._fault("select", collection)
        if collection in self.fail_select:
            raise RemoteStoreError(f"select {collection} failed")
        return [dict(r) for r in self.rows.get(collection, [])]

    def insert(self, collection, rows):
        self.calls.append(("insert", collection))
        self._fault("insert", collection)
        if collection in self.fail_insert:
            raise RemoteStoreError(f"insert {collection} failed")
        self.rows.setdefault(collection, []).extend(dict(r) for r in rows)

    def update(self, collection, partial, match_id):
        self.calls.append(("update", collection))
        if self.on_update is not None:
            self.on_update(collection, partial, match_id)
        self._fault("update", collection)
        if collection in self.fail_update:
            raise RemoteStoreError(f"update {collection} failed")
        for row in self.rows.get(collection, []):
            if row["id"] == match_id:
                row.update(partial)

    def writes(self):
        return [c for c in self.calls if c[0] != "select"]


class MemorySessionStore:
    def __init__(self, initial=None):
        self.data = dict(initial or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def remove(self, key):
        self.data.pop(key, None)
