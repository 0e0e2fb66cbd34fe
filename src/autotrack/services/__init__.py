from .entity_cache import EntityCache, CacheSnapshot
from .sync_service import SyncService
from .auth_service import AuthService
from .reporting_service import ReportingService
from .insights_service import InsightsService

__all__ = [
    "EntityCache",
    "CacheSnapshot",
    "SyncService",
    "AuthService",
    "ReportingService",
    "InsightsService",
]
