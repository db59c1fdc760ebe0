from .exceptions import *
from .base_client import BaseClient, AzureSdkClient, HttpApiClient
from .cache import ResponseCache, CacheEntry
from .utils import *

__all__ = [
    "BaseClient",
    "AzureSdkClient",
    "HttpApiClient",
    "ResponseCache",
    "CacheEntry",
    "DashboardException",
    "ConfigurationException",
    "ClientConnectionException",
    "UpstreamFetchException",
    "ColumnNotFoundException",
    "retry_with_backoff",
    "is_rate_limited",
    "gather_with_concurrency",
    "setup_logging",
]
