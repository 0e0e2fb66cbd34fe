from .models import Identity, Transaction, Product, CashFlow
from .errors import AppError, ValidationError, RemoteStoreError, SessionStoreError, AuthorizationError

__all__ = [
    "Identity",
    "Transaction",
    "Product",
    "CashFlow",
    "AppError",
    "ValidationError",
    "RemoteStoreError",
    "SessionStoreError",
    "AuthorizationError",
]
