from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from autotrack.domain.errors import ValidationError

USERS = "users"
TRANSACTIONS = "transactions"
PRODUCTS = "products"
CASH_FLOWS = "cash_flows"

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_MECHANIC = "mechanic"


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True)
class Identity:
    id: str
    name: str
    role: str
    password: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Identity":
        password = row.get("password")
        return cls(
            id=str(row["id"]),
            name=str(row["name"]),
            role=str(row["role"]),
            password=None if password is None else str(password),
        )

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {"id": self.id, "name": self.name, "role": self.role}
        if self.password is not None:
            row["password"] = self.password
        return row


@dataclass(frozen=True)
class Transaction:
    id: str
    timestamp: int
    total_amount: float
    product_total: float
    service_total: float
    total_profit: float
    created_by: str
    product_discount: Optional[float] = None
    service_discount: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Transaction":
        return cls(
            id=str(row["id"]),
            timestamp=int(row["timestamp"]),
            total_amount=float(row["totalAmount"]),
            product_total=float(row.get("productTotal") or 0),
            service_total=float(row.get("serviceTotal") or 0),
            total_profit=float(row.get("totalProfit") or 0),
            created_by=str(row["createdBy"]),
            product_discount=_opt_float(row.get("productDiscount")),
            service_discount=_opt_float(row.get("serviceDiscount")),
        )

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "totalAmount": self.total_amount,
            "productTotal": self.product_total,
            "serviceTotal": self.service_total,
            "totalProfit": self.total_profit,
            "createdBy": self.created_by,
        }
        if self.product_discount is not None:
            row["productDiscount"] = self.product_discount
        if self.service_discount is not None:
            row["serviceDiscount"] = self.service_discount
        return row


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    sku: str
    stock: int
    price: Optional[float] = None
    cost: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        stock = int(row["stock"])
        if stock < 0:
            raise ValueError(f"Product {row['id']} has negative stock: {stock}")
        return cls(
            id=str(row["id"]),
            name=str(row["name"]),
            sku=str(row["sku"]),
            stock=stock,
            price=_opt_float(row.get("price")),
            cost=_opt_float(row.get("cost")),
        )

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {"id": self.id, "name": self.name, "sku": self.sku, "stock": self.stock}
        if self.price is not None:
            row["price"] = self.price
        if self.cost is not None:
            row["cost"] = self.cost
        return row


@dataclass(frozen=True)
class CashFlow:
    id: str
    type: str
    amount: float
    description: Optional[str] = None
    timestamp: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CashFlow":
        ts = row.get("timestamp")
        description = row.get("description")
        return cls(
            id=str(row["id"]),
            type=str(row["type"]),
            amount=float(row["amount"]),
            description=None if description is None else str(description),
            timestamp=None if ts is None else int(ts),
        )

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {"id": self.id, "type": self.type, "amount": self.amount}
        if self.description is not None:
            row["description"] = self.description
        if self.timestamp is not None:
            row["timestamp"] = self.timestamp
        return row


ENTITY_TYPES: dict[str, type] = {
    USERS: Identity,
    TRANSACTIONS: Transaction,
    PRODUCTS: Product,
    CASH_FLOWS: CashFlow,
}


def entity_type(collection: str) -> type:
    try:
        return ENTITY_TYPES[collection]
    except KeyError:
        raise KeyError(f"Unknown collection: {collection}") from None


def merge_row(entity, partial: Mapping[str, Any]):
    """Return a copy of ``entity`` with the row-shaped ``partial`` applied field by field."""
    merged = {**entity.to_row(), **partial}
    # the key is the identity of the row and never moves
    merged["id"] = entity.id
    try:
        return type(entity).from_row(merged)
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Rejected update for {type(entity).__name__} {entity.id}: {e}") from e
