"""
SQLite-based API response log storage.

Provides persistent storage of provider call audit records, including the
uploaded image bytes, with the secondary indexes the audit views query by.
"""

import sqlite3
import json
from datetime import datetime, UTC
from typing import Optional

from ...models.api_log import ApiResponseLog
from ...models.invoice import UsageMetadata
from .api_log_store_base import ApiLogStoreBase

_COLUMNS = """
    id, request_id, timestamp, api_provider, model_version, request_payload,
    response_content, usage_metadata, processing_time_ms, success,
    error_message, file_name, file_size, image_data, image_mime_type
"""


def _format_timestamp(value: datetime) -> str:
    # Fixed-width UTC text so lexical order == chronological order
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class SQLiteApiLogStore(ApiLogStoreBase):
    """
    SQLite-backed audit store.

    Features:
    - Persistent storage across application restarts
    - Indexes on timestamp, provider, request id and (provider, timestamp)
    - Thread-safe operations (one connection per call, SQLite's built-in locking)
    """

    def __init__(self, db_path: str = "api_logs.db"):
        """
        Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (default: api_logs.db)
        """
        self.db_path = db_path
        self._init_database()

    def _init_database(self):
        """Create the log table and its indexes if they don't exist"""
        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS api_response_logs (
                    id TEXT PRIMARY KEY,
                    request_id TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    api_provider TEXT NOT NULL,
                    model_version TEXT,
                    request_payload TEXT,
                    response_content TEXT NOT NULL,
                    usage_metadata TEXT,
                    processing_time_ms INTEGER NOT NULL DEFAULT 0,
                    success INTEGER NOT NULL,
                    error_message TEXT,
                    file_name TEXT,
                    file_size INTEGER,
                    image_data BLOB,
                    image_mime_type TEXT
                )
            """)

            # Recent-first listing
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_api_logs_timestamp
                ON api_response_logs(timestamp DESC)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_api_logs_provider
                ON api_response_logs(api_provider)
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_api_logs_request_id
                ON api_response_logs(request_id)
            """)

            # Provider filter + recent-first listing
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_api_logs_provider_timestamp
                ON api_response_logs(api_provider, timestamp DESC)
            """)

            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def _row_to_log(row: sqlite3.Row) -> ApiResponseLog:
        usage = json.loads(row["usage_metadata"]) if row["usage_metadata"] else None
        return ApiResponseLog(
            id=row["id"],
            request_id=row["request_id"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            api_provider=row["api_provider"],
            model_version=row["model_version"],
            request_payload=row["request_payload"],
            response_content=row["response_content"],
            usage_metadata=UsageMetadata.model_validate(usage) if usage else None,
            processing_time_ms=row["processing_time_ms"],
            success=bool(row["success"]),
            error_message=row["error_message"],
            file_name=row["file_name"],
            file_size=row["file_size"],
            image_data=row["image_data"],
            image_mime_type=row["image_mime_type"],
        )

    def _query(self, sql: str, params: tuple = ()) -> list:
        conn = self._get_connection()
        try:
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [self._row_to_log(row) for row in rows]

    def save(self, log: ApiResponseLog) -> str:
        """
        Insert one audit record.

        Args:
            log: Audit record to persist

        Returns:
            The record id
        """
        usage = log.usage_metadata.model_dump(by_alias=True) if log.usage_metadata else None

        conn = self._get_connection()
        try:
            conn.execute(f"""
                INSERT INTO api_response_logs ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                log.id,
                log.request_id,
                _format_timestamp(log.timestamp),
                log.api_provider,
                log.model_version,
                log.request_payload,
                log.response_content,
                json.dumps(usage) if usage is not None else None,
                log.processing_time_ms,
                int(log.success),
                log.error_message,
                log.file_name,
                log.file_size,
                log.image_data,
                log.image_mime_type,
            ))
            conn.commit()
        finally:
            conn.close()

        return log.id

    def get(self, log_id: str) -> Optional[ApiResponseLog]:
        logs = self._query(f"""
            SELECT {_COLUMNS}
            FROM api_response_logs
            WHERE id = ?
        """, (log_id,))
        return logs[0] if logs else None

    def list_recent(self, limit: int = 50) -> list:
        """List records ordered by call start time, newest first"""
        return self._query(f"""
            SELECT {_COLUMNS}
            FROM api_response_logs
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
        """, (limit,))

    def list_by_provider(self, provider: str, limit: int = 100) -> list:
        """List records for one provider (case-sensitive), newest first"""
        return self._query(f"""
            SELECT {_COLUMNS}
            FROM api_response_logs
            WHERE api_provider = ?
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
        """, (provider, limit))

    def find_by_request_id(self, request_id: str) -> list:
        return self._query(f"""
            SELECT {_COLUMNS}
            FROM api_response_logs
            WHERE request_id = ?
            ORDER BY timestamp DESC, rowid DESC
        """, (request_id,))

    def delete(self, log_id: str) -> bool:
        conn = self._get_connection()
        try:
            cursor = conn.execute("DELETE FROM api_response_logs WHERE id = ?", (log_id,))
            rows_affected = cursor.rowcount
            conn.commit()
        finally:
            conn.close()

        return rows_affected > 0

    def delete_all(self) -> int:
        conn = self._get_connection()
        try:
            cursor = conn.execute("DELETE FROM api_response_logs")
            rows_affected = cursor.rowcount
            conn.commit()
        finally:
            conn.close()

        return rows_affected
