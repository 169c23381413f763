"""
Audit trail of outbound provider calls.

record() hands the write to a small worker pool and returns immediately:
the parse/weather response never waits on, or fails because of, the audit
store. A failed write is logged and dropped. A crash between dispatch and
write loses that one record.
"""

import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, UTC
from typing import Optional

from loguru import logger

from ..core.exceptions import InvoiceParserError
from ..models.api_log import ApiInteraction, ApiLogDetail, ApiResponseLog
from ..models.invoice import ParsedInvoice
from .extractors import EXTRACTORS
from .storage import ApiLogStoreBase


class CallClock:
    """Request id, UTC start time and elapsed wall-clock for one provider call"""

    def __init__(self):
        self.request_id = str(uuid.uuid4())
        self.started_at = datetime.now(UTC)
        self._start = time.perf_counter()
        self._elapsed_ms: Optional[int] = None

    def stop(self) -> int:
        if self._elapsed_ms is None:
            self._elapsed_ms = int((time.perf_counter() - self._start) * 1000)
        return self._elapsed_ms

    @property
    def elapsed_ms(self) -> int:
        return self._elapsed_ms if self._elapsed_ms is not None else self.stop()


class ApiResponseLogService:
    def __init__(self, store: ApiLogStoreBase, max_workers: int = 2):
        self.store = store
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="api-log")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    # --- writes -----------------------------------------------------------

    def record(self, interaction: ApiInteraction) -> str:
        """
        Build the audit record and dispatch its write without waiting.

        Returns:
            The id the record will be stored under
        """
        log = interaction.to_log()
        try:
            future = self._executor.submit(self._write, log)
        except RuntimeError as e:
            # Executor already shut down (process stopping)
            logger.error(
                "Failed to dispatch API response log: {error}",
                error=str(e),
                provider=log.api_provider,
                request_id=log.request_id,
            )
            return log.id

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._on_write_done)
        return log.id

    def _write(self, log: ApiResponseLog) -> ApiResponseLog:
        self.store.save(log)
        return log

    def _on_write_done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

        error = future.exception()
        if error is not None:
            logger.opt(exception=error).error(f"Failed to save API response log: {error}")
            return

        log = future.result()
        logger.debug(
            "Saved API response log",
            log_id=log.id,
            provider=log.api_provider,
            success=log.success,
        )

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for audit writes dispatched so far to finish"""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        self.flush()
        self._executor.shutdown(wait=True)

    # --- reads ------------------------------------------------------------

    def get(self, log_id: str) -> Optional[ApiResponseLog]:
        return self.store.get(log_id)

    def list_recent(self, limit: int = 50) -> list[ApiResponseLog]:
        return self.store.list_recent(limit)

    def list_by_provider(self, provider: str, limit: int = 100) -> list[ApiResponseLog]:
        return self.store.list_by_provider(provider, limit)

    def find_by_request_id(self, request_id: str) -> list[ApiResponseLog]:
        return self.store.find_by_request_id(request_id)

    def get_image(self, log_id: str) -> Optional[tuple[bytes, str]]:
        """Stored image bytes and MIME type, or None if the log or its image is missing"""
        log = self.store.get(log_id)
        if log is None or not log.image_data:
            return None
        return log.image_data, log.image_mime_type or "image/jpeg"

    def get_detail(self, log_id: str) -> Optional[ApiLogDetail]:
        log = self.store.get(log_id)
        if log is None:
            return None
        return ApiLogDetail.from_log(log, parsed_invoice=reparse_invoice(log))

    # --- deletes ----------------------------------------------------------

    def delete(self, log_id: str) -> bool:
        deleted = self.store.delete(log_id)
        logger.info("Deleted API response log", log_id=log_id, deleted=deleted)
        return deleted

    def delete_all(self) -> int:
        count = self.store.delete_all()
        logger.info("Deleted all API response logs", count=count)
        return count


def reparse_invoice(log: ApiResponseLog) -> Optional[ParsedInvoice]:
    """
    Re-run extraction over a stored raw response.

    Uses the same extractors as live parsing so the detail view always
    reflects current extraction logic, including for attempts that failed
    to parse at the time. Best effort: None when there is no raw response,
    the record is not an invoice call, or the response does not parse.
    """
    extractor = EXTRACTORS.get(log.api_provider)
    if extractor is None or not log.response_content:
        return None
    try:
        return extractor.parse(log.response_content)
    except InvoiceParserError as e:
        logger.debug("Stored response no longer parses: {error}", error=str(e), log_id=log.id)
        return None
