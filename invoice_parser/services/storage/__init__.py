from .api_log_store_base import ApiLogStoreBase
from .api_logs import InMemoryApiLogStore
from .api_logs_sqlite import SQLiteApiLogStore

__all__ = ["ApiLogStoreBase", "InMemoryApiLogStore", "SQLiteApiLogStore"]
