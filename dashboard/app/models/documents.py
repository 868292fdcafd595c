"""Document models - listing, filters, uploads and categorization jobs."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from dashboard.app.models.categories import CategoryRef
from dashboard.app.models.common import ApiModel, format_bytes

ALLOWED_UPLOAD_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "text/csv",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    }
)

HIGH_CONFIDENCE_THRESHOLD = 80


class UploadRejectedError(ValueError):
    """A file failed the client-side upload checks."""


class Document(ApiModel):
    """Uploaded document; `categories` is assembled client-side."""

    id: str
    filename: str
    original_filename: str
    mime_type: str
    file_size: int
    created_at: datetime
    updated_at: datetime | None = None
    categories: list[CategoryRef] = Field(default_factory=list)

    @property
    def file_extension(self) -> str:
        _, dot, ext = self.original_filename.rpartition(".")
        return ext.lower() if dot else ""

    @property
    def file_type(self) -> Literal["document", "image", "text", "other"]:
        if self.mime_type.startswith("image/"):
            return "image"
        if self.mime_type.startswith("text/"):
            return "text"
        if any(marker in self.mime_type for marker in ("pdf", "document", "sheet")):
            return "document"
        return "other"

    @property
    def file_size_formatted(self) -> str:
        return format_bytes(self.file_size)

    @property
    def has_categories(self) -> bool:
        return len(self.categories) > 0

    @property
    def ai_categories(self) -> list[CategoryRef]:
        return [c for c in self.categories if c.is_ai_generated]

    @property
    def manual_categories(self) -> list[CategoryRef]:
        return [c for c in self.categories if not c.is_ai_generated]

    @property
    def high_confidence_categories(self) -> list[CategoryRef]:
        return [
            c for c in self.categories if (c.confidence_score or 0) >= HIGH_CONFIDENCE_THRESHOLD
        ]


class DocumentListResponse(ApiModel):
    """A page of documents plus storage accounting."""

    documents: list[Document] = Field(default_factory=list)
    total_size: int = 0
    quota: int = 0
    used: int = 0


class DocumentFilterOptions(ApiModel):
    """Optional filters for the document list."""

    category_id: str | None = None
    category_ids: list[str] | None = None
    include_subcategories: bool | None = None
    is_ai_categorized: bool | None = None
    min_confidence_score: float | None = Field(default=None, ge=0, le=100)

    def to_query_params(self) -> dict[str, str]:
        """Render as query parameters; booleans as true/false, id lists comma-joined."""
        params: dict[str, str] = {}
        for key, value in self.to_wire().items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            elif isinstance(value, list):
                if value:
                    params[key] = ",".join(str(v) for v in value)
            else:
                params[key] = str(value)
        return params


class CategorizationJob(ApiModel):
    """Handle of a queued AI categorization job."""

    job_id: str


class BulkCategorizationRequest(ApiModel):
    """Queue categorization for several documents."""

    document_ids: list[str] = Field(..., min_length=1)
    confidence_threshold: float | None = Field(default=None, ge=0, le=100)


class BulkCategorizationResponse(ApiModel):
    """Status of a bulk categorization job."""

    job_id: str
    status: Literal["queued", "processing", "completed", "failed"]


def upload_rejection_reason(
    size: int,
    mime_type: str,
    *,
    max_bytes: int,
    remaining_bytes: int | None = None,
) -> str | None:
    """Client-side upload checks; returns why a file would be rejected, or None."""
    if mime_type not in ALLOWED_UPLOAD_MIME_TYPES:
        return f"File type {mime_type} is not supported"
    if size > max_bytes:
        return f"File is larger than the {format_bytes(max_bytes)} limit"
    if remaining_bytes is not None and size > remaining_bytes:
        return "Not enough storage space remaining"
    return None
