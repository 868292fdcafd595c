"""Repository protocol interfaces for remote data access."""

from typing import Protocol

from dashboard.app.api.client import ProgressCallback
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
    CategoryUpdateRequest,
    DocumentAssignmentRequest,
    DocumentCategoryAssignment,
)
from dashboard.app.models.documents import (
    BulkCategorizationRequest,
    BulkCategorizationResponse,
    CategorizationJob,
    Document,
    DocumentFilterOptions,
    DocumentListResponse,
)


class AuthRepository(Protocol):
    """Remote authentication operations."""

    async def login(self, credentials: LoginRequest) -> AuthResponse: ...

    async def register(self, data: RegisterRequest) -> AuthResponse: ...

    async def logout(self, refresh_token: str) -> None: ...

    async def logout_all(self) -> None: ...

    async def refresh_token(self, refresh_token: str) -> AuthTokens: ...

    async def verify_email(self, data: EmailVerificationRequest) -> AuthResponse | None:
        """Verify the email code; returns a new session if the server issues one."""
        ...

    async def resend_verification(self, email: str) -> None: ...

    async def get_current_user(self) -> SessionUser: ...


class CategoryLookup(Protocol):
    """The two dependent lookups needed to join documents with categories."""

    async def get_document_categories(self, document_id: str) -> list[DocumentCategoryAssignment]:
        """Assignment records for one document."""
        ...

    async def get_category(self, category_id: str) -> Category:
        """Details of one category."""
        ...


class CategoryRepository(CategoryLookup, Protocol):
    """Remote category operations."""

    async def create_category(self, data: CategoryCreateRequest) -> Category: ...

    async def get_categories(self, params: CategoryQueryParams | None = None) -> list[Category]: ...

    async def get_category_tree(self, include_system_categories: bool = True) -> list[Category]: ...

    async def update_category(self, category_id: str, data: CategoryUpdateRequest) -> Category: ...

    async def delete_category(self, category_id: str) -> None: ...

    async def assign_document(
        self, category_id: str, assignment: DocumentAssignmentRequest
    ) -> None: ...

    async def remove_document(self, category_id: str, document_id: str) -> None: ...

    async def bulk_assign_documents(
        self, category_id: str, assignment: BulkDocumentAssignmentRequest
    ) -> BulkAssignmentResult: ...

    async def get_category_path(self, category_id: str) -> list[Category]: ...

    async def get_category_descendants(
        self, category_id: str, include_self: bool = False
    ) -> list[Category]: ...


class DocumentRepository(CategoryLookup, Protocol):
    """Remote document operations."""

    async def list_documents(
        self, filters: DocumentFilterOptions | None = None
    ) -> DocumentListResponse: ...

    async def get_document(self, document_id: str) -> Document: ...

    async def upload_document(
        self,
        filename: str,
        content: bytes,
        mime_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> Document: ...

    async def download_document(
        self, document_id: str, on_progress: ProgressCallback | None = None
    ) -> bytes: ...

    async def delete_document(self, document_id: str) -> None: ...

    async def categorize_document(
        self, document_id: str, force_recategorization: bool = False
    ) -> CategorizationJob: ...

    async def bulk_categorize(
        self, data: BulkCategorizationRequest
    ) -> BulkCategorizationResponse: ...
