"""
Audit records for outbound provider calls.

One ApiResponseLog is written per call attempt and never updated.
The summary and detail projections are what the HTTP layer returns.
"""

from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Optional
import base64
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .invoice import ParsedInvoice, UsageMetadata


def _new_log_id() -> str:
    return uuid.uuid4().hex


class ApiResponseLog(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=_new_log_id)
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    api_provider: str
    model_version: Optional[str] = None
    request_payload: Optional[str] = None
    response_content: str = ""
    usage_metadata: Optional[UsageMetadata] = None
    processing_time_ms: int = 0
    success: bool = False
    error_message: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    image_data: Optional[bytes] = Field(default=None, exclude=True)
    image_mime_type: Optional[str] = None


@dataclass(frozen=True)
class ApiInteraction:
    """
    Everything needed to build one audit record, captured by value at call time.

    The uploaded stream may already be closed when the detached write runs,
    so image bytes are held here rather than read later.
    """

    provider: str
    request_id: str
    started_at: datetime
    processing_time_ms: int
    success: bool
    response_content: str
    request_payload: Optional[str] = None
    error_message: Optional[str] = None
    model_version: Optional[str] = None
    usage_metadata: Optional[UsageMetadata] = None
    file_name: Optional[str] = None
    image_data: Optional[bytes] = None
    image_mime_type: Optional[str] = None

    def to_log(self) -> ApiResponseLog:
        return ApiResponseLog(
            request_id=self.request_id,
            timestamp=self.started_at,
            api_provider=self.provider,
            model_version=self.model_version,
            request_payload=self.request_payload,
            response_content=self.response_content,
            usage_metadata=self.usage_metadata,
            processing_time_ms=self.processing_time_ms,
            success=self.success,
            error_message=self.error_message if not self.success else None,
            file_name=self.file_name,
            file_size=len(self.image_data) if self.image_data is not None else None,
            image_data=self.image_data,
            image_mime_type=self.image_mime_type,
        )


class ApiLogSummary(BaseModel):
    """List view of an audit record (no payloads, no image)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    request_id: str
    timestamp: datetime
    api_provider: str
    model_version: Optional[str] = None
    processing_time_ms: int = 0
    success: bool = False
    error_message: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    image_mime_type: Optional[str] = None
    usage_metadata: Optional[UsageMetadata] = None

    @classmethod
    def from_log(cls, log: ApiResponseLog) -> "ApiLogSummary":
        return cls.model_validate(log.model_dump(include=set(cls.model_fields)))


class ApiLogDetail(ApiLogSummary):
    """Single-record view with raw payloads and a re-derived invoice"""

    request_payload: Optional[str] = None
    response_content: str = ""
    image_base64: Optional[str] = None
    parsed_invoice: Optional[ParsedInvoice] = None

    @classmethod
    def from_log(cls, log: ApiResponseLog, parsed_invoice: Optional[ParsedInvoice] = None) -> "ApiLogDetail":
        data = log.model_dump(include=set(cls.model_fields))
        if log.image_data:
            data["image_base64"] = base64.b64encode(log.image_data).decode("ascii")
        data["parsed_invoice"] = parsed_invoice
        return cls.model_validate(data)
