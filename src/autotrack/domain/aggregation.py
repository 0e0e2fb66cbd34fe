"""Role-scoped dashboard figures computed from cache snapshots.

Every function here is pure: the same collections, viewer and ``now`` always
give the same result.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from autotrack.domain.models import CashFlow, Identity, Product, Transaction
from autotrack.domain.permissions import VIEW_ALL_TRANSACTIONS, VIEW_PROFIT, can

LOW_STOCK_THRESHOLD = 5
TRAILING_DAYS = 7

EXPENSE = "expense"
WITHDRAWAL = "withdrawal"

ALL_TIME = "All Time"
TODAY = "Today"

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class ScopedTransactions:
    label: str
    transactions: tuple[Transaction, ...]


@dataclass(frozen=True)
class DashboardSummary:
    time_label: str
    total_revenue: float
    product_revenue: float
    service_revenue: float
    total_profit: float
    total_expenses: float
    total_withdrawals: float
    cash_on_hand: float
    low_stock: tuple[Product, ...]

    @property
    def low_stock_count(self) -> int:
        return len(self.low_stock)


@dataclass(frozen=True)
class DayPoint:
    day: date
    name: str
    sales: float
    profit: float


def local_now(now: Optional[datetime] = None) -> datetime:
    """Naive local wall-clock time; aware values are converted to the machine zone first."""
    if now is None:
        return datetime.now()
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def _local_date(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def start_of_day_ms(now: datetime) -> int:
    return int(datetime.combine(local_now(now).date(), time.min).timestamp() * 1000)


def scope_transactions(
    viewer: Optional[Identity],
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
) -> ScopedTransactions:
    """Admins analyse every transaction; anyone else only their own sales from today."""
    if can(viewer, VIEW_ALL_TRANSACTIONS):
        return ScopedTransactions(ALL_TIME, tuple(transactions))

    viewer_id = viewer.id if viewer is not None else None
    day_start = start_of_day_ms(local_now(now))
    mine = tuple(t for t in transactions if t.created_by == viewer_id and t.timestamp >= day_start)
    return ScopedTransactions(TODAY, mine)


def total_revenue(transactions: Iterable[Transaction]) -> float:
    return sum((t.total_amount for t in transactions), 0.0)


def product_revenue(transactions: Iterable[Transaction]) -> float:
    return sum((t.product_total - (t.product_discount or 0) for t in transactions), 0.0)


def service_revenue(transactions: Iterable[Transaction]) -> float:
    return sum((t.service_total - (t.service_discount or 0) for t in transactions), 0.0)


def cash_flow_total(cash_flows: Iterable[CashFlow], flow_type: str) -> float:
    return sum((c.amount for c in cash_flows if c.type == flow_type), 0.0)


def cash_on_hand(transactions: Iterable[Transaction], cash_flows: Sequence[CashFlow]) -> float:
    # shop-wide figure: never scoped by viewer
    outgoing = cash_flow_total(cash_flows, EXPENSE) + cash_flow_total(cash_flows, WITHDRAWAL)
    return total_revenue(transactions) - outgoing


def low_stock_products(products: Iterable[Product], threshold: int = LOW_STOCK_THRESHOLD) -> tuple[Product, ...]:
    return tuple(p for p in products if p.stock < threshold)


def build_summary(
    viewer: Optional[Identity],
    transactions: Sequence[Transaction],
    products: Sequence[Product],
    cash_flows: Sequence[CashFlow],
    now: Optional[datetime] = None,
) -> DashboardSummary:
    scoped = scope_transactions(viewer, transactions, now)
    sees_profit = can(viewer, VIEW_PROFIT)
    return DashboardSummary(
        time_label=scoped.label,
        total_revenue=total_revenue(scoped.transactions),
        product_revenue=product_revenue(scoped.transactions),
        service_revenue=service_revenue(scoped.transactions),
        total_profit=sum((t.total_profit for t in scoped.transactions), 0.0) if sees_profit else 0.0,
        total_expenses=cash_flow_total(cash_flows, EXPENSE),
        total_withdrawals=cash_flow_total(cash_flows, WITHDRAWAL),
        cash_on_hand=cash_on_hand(transactions, cash_flows),
        low_stock=low_stock_products(products),
    )


def trailing_series(
    viewer: Optional[Identity],
    transactions: Sequence[Transaction],
    now: Optional[datetime] = None,
    days: int = TRAILING_DAYS,
) -> list[DayPoint]:
    """Daily sales (and profit, for admins) over the last ``days`` local days, oldest first.

    Transactions are matched to a bucket by exact local calendar date, so
    anything outside the window, including future-dated rows, is left out.
    """
    today = local_now(now).date()
    sees_profit = can(viewer, VIEW_PROFIT)

    by_day: dict[date, list[Transaction]] = {}
    for t in transactions:
        by_day.setdefault(_local_date(t.timestamp), []).append(t)

    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_tx = by_day.get(day, [])
        points.append(
            DayPoint(
                day=day,
                name=_WEEKDAYS[day.weekday()],
                sales=total_revenue(day_tx),
                profit=sum((t.total_profit for t in day_tx), 0.0) if sees_profit else 0.0,
            )
        )
    return points
