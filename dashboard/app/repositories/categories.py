"""HTTP implementation of CategoryRepository."""

from typing import Any

from dashboard.app.api import endpoints
from dashboard.app.api.client import ApiClient, unwrap_envelope
from dashboard.app.categories.tree import build_category_tree
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


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


class ApiCategoryRepository:
    """Category endpoints under /api/v1/categories."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def create_category(self, data: CategoryCreateRequest) -> Category:
        payload = await self._client.post(endpoints.CATEGORIES, data.to_wire())
        return Category.model_validate(unwrap_envelope(payload))

    async def get_categories(self, params: CategoryQueryParams | None = None) -> list[Category]:
        query: dict[str, str] = {}
        if params is not None:
            if params.include_system_categories is not None:
                query["includeSystemCategories"] = _bool_param(params.include_system_categories)
            if params.hierarchical is not None:
                query["hierarchical"] = _bool_param(params.hierarchical)
            if params.parent_id:
                query["parentId"] = params.parent_id

        payload = await self._client.get(endpoints.CATEGORIES, params=query or None)
        payload = unwrap_envelope(payload)
        if isinstance(payload, dict):
            payload = payload.get("categories", [])
        return parse_categories(payload)

    async def get_category_tree(self, include_system_categories: bool = True) -> list[Category]:
        """Fetch the flat category list and assemble it into a forest locally."""
        flat = await self.get_categories(
            CategoryQueryParams(include_system_categories=include_system_categories)
        )
        return build_category_tree(flat)

    async def get_category(self, category_id: str) -> Category:
        payload = await self._client.get(endpoints.category(category_id))
        return Category.model_validate(unwrap_envelope(payload))

    async def update_category(self, category_id: str, data: CategoryUpdateRequest) -> Category:
        payload = await self._client.put(endpoints.category(category_id), data.to_wire())
        return Category.model_validate(unwrap_envelope(payload))

    async def delete_category(self, category_id: str) -> None:
        await self._client.delete(endpoints.category(category_id))

    async def assign_document(
        self, category_id: str, assignment: DocumentAssignmentRequest
    ) -> None:
        await self._client.post(endpoints.category_documents(category_id), assignment.to_wire())

    async def remove_document(self, category_id: str, document_id: str) -> None:
        await self._client.delete(endpoints.category_document(category_id, document_id))

    async def bulk_assign_documents(
        self, category_id: str, assignment: BulkDocumentAssignmentRequest
    ) -> BulkAssignmentResult:
        payload = await self._client.post(
            endpoints.category_documents_bulk(category_id), assignment.to_wire()
        )
        return BulkAssignmentResult.model_validate(unwrap_envelope(payload))

    async def get_category_path(self, category_id: str) -> list[Category]:
        payload = await self._client.get(endpoints.category_path(category_id))
        return parse_categories(unwrap_envelope(payload))

    async def get_category_descendants(
        self, category_id: str, include_self: bool = False
    ) -> list[Category]:
        params = {"includeSelf": "true"} if include_self else None
        payload = await self._client.get(endpoints.category_descendants(category_id), params=params)
        return parse_categories(unwrap_envelope(payload))

    async def get_document_categories(self, document_id: str) -> list[DocumentCategoryAssignment]:
        payload = await self._client.get(endpoints.document_category_assignments(document_id))
        return parse_assignments(unwrap_envelope(payload))


def parse_categories(payload: Any) -> list[Category]:
    return [Category.model_validate(item) for item in payload or []]


def parse_assignments(payload: Any) -> list[DocumentCategoryAssignment]:
    return [DocumentCategoryAssignment.model_validate(item) for item in payload or []]
