"""
Abstract base class for API response log storage.

Defines the interface that all audit stores must implement,
enabling dependency injection and easy swapping of storage backends.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ...models.api_log import ApiResponseLog


class ApiLogStoreBase(ABC):
    """
    Abstract base class for the audit trail of provider calls.

    Implementations can use:
    - In-memory storage (for testing/demo)
    - SQLite (for single-instance deployments)
    - MongoDB / Cosmos DB (for shared deployments)

    Whatever the engine, records must be efficiently reachable by
    timestamp (descending), by provider, by request id, and by
    (provider, timestamp descending). Implementations must be safe to call
    from several writer threads at once.
    """

    @abstractmethod
    def save(self, log: ApiResponseLog) -> str:
        """
        Insert a new log record. Records are never updated afterwards.

        Args:
            log: Fully built audit record (its id is already assigned)

        Returns:
            The record id
        """
        pass

    @abstractmethod
    def get(self, log_id: str) -> Optional[ApiResponseLog]:
        """
        Get a log record by id, including its image bytes.

        Returns None if not found.
        """
        pass

    @abstractmethod
    def list_recent(self, limit: int = 50) -> list[ApiResponseLog]:
        """List the most recent records, newest first."""
        pass

    @abstractmethod
    def list_by_provider(self, provider: str, limit: int = 100) -> list[ApiResponseLog]:
        """
        List records for one provider tag, newest first.

        Args:
            provider: Provider tag, matched case-sensitively
            limit: Maximum number of records to return
        """
        pass

    @abstractmethod
    def find_by_request_id(self, request_id: str) -> list[ApiResponseLog]:
        """List all records written for a caller-generated request id."""
        pass

    @abstractmethod
    def delete(self, log_id: str) -> bool:
        """
        Delete one record.

        Returns:
            True if a record was removed, False if it did not exist
        """
        pass

    @abstractmethod
    def delete_all(self) -> int:
        """
        Delete every record.

        Returns:
            Number of records removed
        """
        pass
