"""Which role may see or do what. The one role policy for the whole app."""
from __future__ import annotations

from typing import Optional

from autotrack.domain.models import ROLE_ADMIN, ROLE_MANAGER, Identity

VIEW_ALL_TRANSACTIONS = "view_all_transactions"
VIEW_PROFIT = "view_profit"
VIEW_CASH_POSITION = "view_cash_position"
REQUEST_INSIGHTS = "request_insights"
EXPORT_REPORT = "export_report"

PERMISSIONS: dict[str, set[str]] = {
    VIEW_ALL_TRANSACTIONS: {ROLE_ADMIN},
    VIEW_PROFIT: {ROLE_ADMIN},
    VIEW_CASH_POSITION: {ROLE_ADMIN},
    REQUEST_INSIGHTS: {ROLE_ADMIN},
    EXPORT_REPORT: {ROLE_ADMIN, ROLE_MANAGER},
}


def can(user: Optional[Identity], action: str) -> bool:
    if user is None:
        return False
    allowed_roles = PERMISSIONS.get(action)
    if not allowed_roles:
        return False
    return user.role in allowed_roles
