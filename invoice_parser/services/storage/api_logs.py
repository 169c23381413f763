"""
In-memory API log store (for tests and demos).
In production, use the SQLite store or a document database.
"""
import threading
from typing import Dict, Optional

from ...models.api_log import ApiResponseLog
from .api_log_store_base import ApiLogStoreBase


class InMemoryApiLogStore(ApiLogStoreBase):
    def __init__(self):
        self._logs: Dict[str, ApiResponseLog] = {}
        self._lock = threading.Lock()

    def _newest_first(self, logs: list) -> list:
        # dict preserves insertion order, so reversing first breaks timestamp ties newest-first
        ordered = sorted(reversed(logs), key=lambda log: log.timestamp, reverse=True)
        return [log.model_copy(deep=True) for log in ordered]

    def save(self, log: ApiResponseLog) -> str:
        with self._lock:
            self._logs[log.id] = log.model_copy(deep=True)
        return log.id

    def get(self, log_id: str) -> Optional[ApiResponseLog]:
        with self._lock:
            log = self._logs.get(log_id)
        return log.model_copy(deep=True) if log is not None else None

    def list_recent(self, limit: int = 50) -> list:
        with self._lock:
            logs = list(self._logs.values())
        return self._newest_first(logs)[:limit]

    def list_by_provider(self, provider: str, limit: int = 100) -> list:
        with self._lock:
            logs = [log for log in self._logs.values() if log.api_provider == provider]
        return self._newest_first(logs)[:limit]

    def find_by_request_id(self, request_id: str) -> list:
        with self._lock:
            logs = [log for log in self._logs.values() if log.request_id == request_id]
        return self._newest_first(logs)

    def delete(self, log_id: str) -> bool:
        with self._lock:
            return self._logs.pop(log_id, None) is not None

    def delete_all(self) -> int:
        with self._lock:
            count = len(self._logs)
            self._logs.clear()
        return count
