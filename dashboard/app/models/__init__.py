"""Models package - re-exports for convenience."""

from dashboard.app.models.auth import (
    AuthResponse,
    AuthTokens,
    EmailVerificationRequest,
    LoginRequest,
    RegisterRequest,
    SessionUser,
)
from dashboard.app.models.categories import (
    BulkAssignmentResult,
    BulkDocumentAssignmentRequest,
    Category,
    CategoryCreateRequest,
    CategoryQueryParams,
    CategoryRef,
    CategoryUpdateRequest,
    DocumentAssignmentRequest,
    DocumentCategoryAssignment,
)
from dashboard.app.models.common import ApiModel, Theme, format_bytes
from dashboard.app.models.documents import (
    BulkCategorizationRequest,
    BulkCategorizationResponse,
    CategorizationJob,
    Document,
    DocumentFilterOptions,
    DocumentListResponse,
    UploadRejectedError,
    upload_rejection_reason,
)

__all__ = [
    # Common
    "ApiModel",
    "Theme",
    "format_bytes",
    # Auth
    "AuthTokens",
    "AuthResponse",
    "SessionUser",
    "LoginRequest",
    "RegisterRequest",
    "EmailVerificationRequest",
    # Categories
    "Category",
    "CategoryRef",
    "CategoryQueryParams",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "DocumentCategoryAssignment",
    "DocumentAssignmentRequest",
    "BulkDocumentAssignmentRequest",
    "BulkAssignmentResult",
    # Documents
    "Document",
    "DocumentListResponse",
    "DocumentFilterOptions",
    "CategorizationJob",
    "BulkCategorizationRequest",
    "BulkCategorizationResponse",
    "UploadRejectedError",
    "upload_rejection_reason",
]
