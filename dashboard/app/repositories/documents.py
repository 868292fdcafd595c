"""HTTP implementation of DocumentRepository."""

from dashboard.app.api import endpoints
from dashboard.app.api.client import ApiClient, ProgressCallback, unwrap_envelope
from dashboard.app.models.categories import Category, DocumentCategoryAssignment
from dashboard.app.models.documents import (
    BulkCategorizationRequest,
    BulkCategorizationResponse,
    CategorizationJob,
    Document,
    DocumentFilterOptions,
    DocumentListResponse,
)
from dashboard.app.repositories.categories import parse_assignments


class ApiDocumentRepository:
    """Document endpoints under /api/v1/documents (plus the category lookups they join with)."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list_documents(
        self, filters: DocumentFilterOptions | None = None, *, retries: int | None = None
    ) -> DocumentListResponse:
        params = filters.to_query_params() if filters is not None else None
        payload = await self._client.get(
            endpoints.DOCUMENTS, params=params or None, retries=retries
        )
        return DocumentListResponse.model_validate(unwrap_envelope(payload) or {})

    async def get_document(self, document_id: str) -> Document:
        payload = await self._client.get(endpoints.document(document_id))
        return Document.model_validate(unwrap_envelope(payload))

    async def upload_document(
        self,
        filename: str,
        content: bytes,
        mime_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> Document:
        payload = await self._client.upload_file(
            endpoints.DOCUMENTS_UPLOAD,
            filename=filename,
            content=content,
            content_type=mime_type,
            on_progress=on_progress,
        )
        return Document.model_validate(unwrap_envelope(payload))

    async def download_document(
        self, document_id: str, on_progress: ProgressCallback | None = None
    ) -> bytes:
        return await self._client.download_file(
            endpoints.document_download(document_id), on_progress=on_progress
        )

    async def delete_document(self, document_id: str) -> None:
        await self._client.delete(endpoints.document(document_id))

    async def categorize_document(
        self, document_id: str, force_recategorization: bool = False
    ) -> CategorizationJob:
        payload = await self._client.post(
            endpoints.document_categorize(document_id),
            {"forceRecategorization": force_recategorization},
        )
        return CategorizationJob.model_validate(unwrap_envelope(payload))

    async def bulk_categorize(self, data: BulkCategorizationRequest) -> BulkCategorizationResponse:
        payload = await self._client.post(endpoints.DOCUMENTS_BULK_CATEGORIZE, data.to_wire())
        return BulkCategorizationResponse.model_validate(unwrap_envelope(payload))

    async def get_document_categories(self, document_id: str) -> list[DocumentCategoryAssignment]:
        payload = await self._client.get(endpoints.document_category_assignments(document_id))
        return parse_assignments(unwrap_envelope(payload))

    async def get_category(self, category_id: str) -> Category:
        payload = await self._client.get(endpoints.category(category_id))
        return Category.model_validate(unwrap_envelope(payload))
