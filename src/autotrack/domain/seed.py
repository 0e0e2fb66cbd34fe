"""Built-in rows used in local demo mode and to initialise an empty remote store.

Rows are stored in the remote column shape so seeded and fetched data go
through the same ``from_row`` path.
"""
from __future__ import annotations

import copy
from typing import Any

from autotrack.domain.models import (
    CASH_FLOWS,
    PRODUCTS,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_MECHANIC,
    TRANSACTIONS,
    USERS,
)

SEED_ROWS: dict[str, list[dict[str, Any]]] = {
    USERS: [
        {"id": "u1", "name": "Admin User", "role": ROLE_ADMIN, "password": "admin123"},
        {"id": "u2", "name": "Shop Manager", "role": ROLE_MANAGER, "password": "manager123"},
        {"id": "u3", "name": "Mechanic Joe", "role": ROLE_MECHANIC},
    ],
    PRODUCTS: [
        {"id": "p1", "name": "Synthetic Oil 5W-30", "sku": "OIL-5W30", "stock": 24, "price": 45.0, "cost": 30.0},
        {"id": "p2", "name": "Oil Filter", "sku": "FLT-OIL-01", "stock": 3, "price": 12.0, "cost": 6.5},
        {"id": "p3", "name": "Brake Pads (Front)", "sku": "BRK-PAD-F", "stock": 8, "price": 65.0, "cost": 38.0},
        {"id": "p4", "name": "Spark Plug", "sku": "SPK-PLG-02", "stock": 4, "price": 9.5, "cost": 4.0},
        {"id": "p5", "name": "Air Filter", "sku": "FLT-AIR-03", "stock": 12, "price": 18.0, "cost": 9.0},
    ],
    TRANSACTIONS: [],
    CASH_FLOWS: [],
}


def seed_rows(collection: str) -> list[dict[str, Any]]:
    """Return a private copy of the seed rows for ``collection``."""
    if collection not in SEED_ROWS:
        raise KeyError(f"Unknown collection: {collection}")
    return copy.deepcopy(SEED_ROWS[collection])
