"""Tests for the HTTP repositories (URLs, params, payloads, envelope parsing)."""

import json
from collections.abc import Callable

import httpx
import pytest

from dashboard.app.api.client import ApiClient
from dashboard.app.models.auth import (
    EmailVerificationRequest,
    LoginRequest,
    RegisterRequest,
)
from dashboard.app.models.categories import (
    BulkDocumentAssignmentRequest,
    CategoryCreateRequest,
    CategoryQueryParams,
    CategoryUpdateRequest,
    DocumentAssignmentRequest,
)
from dashboard.app.models.documents import BulkCategorizationRequest, DocumentFilterOptions
from dashboard.app.repositories.auth import ApiAuthRepository
from dashboard.app.repositories.categories import ApiCategoryRepository
from dashboard.app.repositories.documents import ApiDocumentRepository
from tests.fakes import FakeApi

USER = {"id": "u1", "email": "ada@example.com", "emailVerified": True}
DOCUMENT = {
    "id": "d1",
    "filename": "f.pdf",
    "originalFilename": "Report.PDF",
    "mimeType": "application/pdf",
    "fileSize": 2048,
    "createdAt": "2025-01-01T00:00:00Z",
}


def _body(request: httpx.Request) -> object:
    return json.loads(request.content)


class TestApiAuthRepository:
    """Test auth endpoints."""

    @pytest.mark.asyncio
    async def test_login(self, fake_api: FakeApi, make_client: Callable[..., ApiClient]) -> None:
        fake_api.json(
            "POST",
            "/api/v1/auth/login",
            {"data": {"user": USER, "accessToken": "a", "refreshToken": "r"}},
        )

        response = await ApiAuthRepository(make_client()).login(
            LoginRequest(email="ada@example.com", password="secret1")
        )

        assert response.user.email == "ada@example.com"
        assert response.tokens.access_token == "a"
        request = fake_api.requests[0]
        assert _body(request) == {"email": "ada@example.com", "password": "secret1"}
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_register_drops_confirmation(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json(
            "POST",
            "/api/v1/auth/register",
            {"data": {"user": USER, "accessToken": "a", "refreshToken": "r"}},
            status_code=201,
        )

        await ApiAuthRepository(make_client()).register(
            RegisterRequest(email="ada@example.com", password="secret1", confirm_password="secret1")
        )

        assert _body(fake_api.requests[0]) == {"email": "ada@example.com", "password": "secret1"}

    @pytest.mark.asyncio
    async def test_logout_sends_refresh_token(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("POST", "/api/v1/auth/logout", {"message": "ok"})
        await ApiAuthRepository(make_client()).logout("refresh-1")
        request = fake_api.requests[0]
        assert _body(request) == {"refreshToken": "refresh-1"}
        assert request.headers["Authorization"] == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_verify_email_without_session_payload(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("POST", "/api/v1/auth/verify-email", {"message": "Email verified"})

        result = await ApiAuthRepository(make_client()).verify_email(
            EmailVerificationRequest(email="ada@example.com", code="123456")
        )

        assert result is None
        assert _body(fake_api.requests[0]) == {"email": "ada@example.com", "code": "123456"}

    @pytest.mark.asyncio
    async def test_verify_email_with_session_payload(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json(
            "POST",
            "/api/v1/auth/verify-email",
            {"data": {"user": USER, "accessToken": "a2", "refreshToken": "r2"}},
        )

        result = await ApiAuthRepository(make_client()).verify_email(
            EmailVerificationRequest(email="ada@example.com", code="123456")
        )

        assert result is not None
        assert result.access_token == "a2"

    @pytest.mark.asyncio
    async def test_get_current_user_unwraps_user(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("GET", "/api/v1/auth/profile", {"data": {"user": USER}})
        current = await ApiAuthRepository(make_client()).get_current_user()
        assert current.id == "u1"
        assert current.email_verified is True

    @pytest.mark.asyncio
    async def test_resend_verification(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("POST", "/api/v1/auth/resend-verification", {"message": "sent"})
        await ApiAuthRepository(make_client()).resend_verification("ada@example.com")
        assert _body(fake_api.requests[0]) == {"email": "ada@example.com"}


class TestApiCategoryRepository:
    """Test category endpoints."""

    @pytest.mark.asyncio
    async def test_get_categories_query_params(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json(
            "GET",
            "/api/v1/categories",
            {"data": [{"id": "c1", "name": "A", "documentCount": None}]},
        )

        result = await ApiCategoryRepository(make_client()).get_categories(
            CategoryQueryParams(include_system_categories=False, hierarchical=True, parent_id="p")
        )

        assert result[0].document_count == 0
        params = fake_api.requests[0].url.params
        assert params["includeSystemCategories"] == "false"
        assert params["hierarchical"] == "true"
        assert params["parentId"] == "p"

    @pytest.mark.asyncio
    async def test_get_categories_accepts_wrapped_list(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json(
            "GET", "/api/v1/categories", {"data": {"categories": [{"id": "c1", "name": "A"}]}}
        )
        result = await ApiCategoryRepository(make_client()).get_categories()
        assert [c.id for c in result] == ["c1"]
        assert str(fake_api.requests[0].url.params) == ""

    @pytest.mark.asyncio
    async def test_get_category_tree_builds_forest(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json(
            "GET",
            "/api/v1/categories",
            {
                "data": [
                    {"id": "b", "name": "B", "parentId": "a"},
                    {"id": "a", "name": "A"},
                    {"id": "c", "name": "C", "parentId": "missing"},
                ]
            },
        )

        forest = await ApiCategoryRepository(make_client()).get_category_tree()

        assert [n.id for n in forest] == ["a", "c"]
        assert [n.id for n in forest[0].children] == ["b"]
        assert fake_api.requests[0].url.params["includeSystemCategories"] == "true"

    @pytest.mark.asyncio
    async def test_create_and_update(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("POST", "/api/v1/categories", {"data": {"id": "c1", "name": "Tax"}}, 201)
        fake_api.json("PUT", "/api/v1/categories/c1", {"data": {"id": "c1", "name": "Taxes"}})
        repo = ApiCategoryRepository(make_client())

        created = await repo.create_category(CategoryCreateRequest(name="Tax", color="#112233"))
        updated = await repo.update_category("c1", CategoryUpdateRequest(name="Taxes"))

        assert created.name == "Tax"
        assert updated.name == "Taxes"
        assert _body(fake_api.requests[0]) == {"name": "Tax", "color": "#112233"}
        assert _body(fake_api.requests[1]) == {"name": "Taxes"}

    @pytest.mark.asyncio
    async def test_document_assignment_endpoints(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("POST", "/api/v1/categories/c1/documents", {"message": "ok"})
        fake_api.json("DELETE", "/api/v1/categories/c1/documents/d1", {"message": "ok"})
        fake_api.json(
            "POST", "/api/v1/categories/c1/documents/bulk", {"data": {"success": 2, "failed": 1}}
        )
        repo = ApiCategoryRepository(make_client())

        await repo.assign_document("c1", DocumentAssignmentRequest(document_id="d1"))
        await repo.remove_document("c1", "d1")
        result = await repo.bulk_assign_documents(
            "c1", BulkDocumentAssignmentRequest(document_ids=["d1", "d2", "d3"])
        )

        assert _body(fake_api.requests[0]) == {"documentId": "d1"}
        assert (result.success, result.failed) == (2, 1)

    @pytest.mark.asyncio
    async def test_path_and_descendants(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("GET", "/api/v1/categories/c3/path", {"data": [{"id": "c1", "name": "A"}]})
        fake_api.json("GET", "/api/v1/categories/c1/descendants", {"data": []})
        repo = ApiCategoryRepository(make_client())

        path = await repo.get_category_path("c3")
        descendants = await repo.get_category_descendants("c1", include_self=True)

        assert [c.id for c in path] == ["c1"]
        assert descendants == []
        assert fake_api.requests[1].url.params["includeSelf"] == "true"


class TestApiDocumentRepository:
    """Test document endpoints."""

    @pytest.mark.asyncio
    async def test_list_documents_filters(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json(
            "GET",
            "/api/v1/documents",
            {"data": {"documents": [DOCUMENT], "totalSize": 2048, "quota": 10, "used": 1}},
        )

        listing = await ApiDocumentRepository(make_client()).list_documents(
            DocumentFilterOptions(
                category_ids=["c1", "c2"], include_subcategories=True, min_confidence_score=80
            )
        )

        assert listing.documents[0].file_extension == "pdf"
        assert listing.total_size == 2048
        params = fake_api.requests[0].url.params
        assert params["categoryIds"] == "c1,c2"
        assert params["includeSubcategories"] == "true"
        assert params["minConfidenceScore"] == "80.0"

    @pytest.mark.asyncio
    async def test_list_documents_without_filters(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("GET", "/api/v1/documents", {"data": {"documents": []}})
        listing = await ApiDocumentRepository(make_client()).list_documents()
        assert listing.documents == []
        assert fake_api.requests[0].url.query == b""

    @pytest.mark.asyncio
    async def test_get_document_categories(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json(
            "GET",
            "/api/v1/categories/documents/d1/categories",
            {
                "data": [
                    {
                        "id": "x",
                        "documentId": "d1",
                        "categoryId": "c1",
                        "confidenceScore": 91,
                        "isAiGenerated": True,
                    }
                ]
            },
        )

        [assignment] = await ApiDocumentRepository(make_client()).get_document_categories("d1")

        assert assignment.category_id == "c1"
        assert assignment.is_ai_generated is True

    @pytest.mark.asyncio
    async def test_categorize_and_bulk(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("POST", "/api/v1/documents/d1/categorize", {"data": {"jobId": "j1"}})
        fake_api.json(
            "POST",
            "/api/v1/documents/categorize/bulk",
            {"data": {"jobId": "j2", "status": "queued"}},
        )
        repo = ApiDocumentRepository(make_client())

        job = await repo.categorize_document("d1", force_recategorization=True)
        bulk = await repo.bulk_categorize(BulkCategorizationRequest(document_ids=["d1", "d2"]))

        assert job.job_id == "j1"
        assert bulk.status == "queued"
        assert _body(fake_api.requests[0]) == {"forceRecategorization": True}
        assert _body(fake_api.requests[1]) == {"documentIds": ["d1", "d2"]}

    @pytest.mark.asyncio
    async def test_upload_and_download(
        self, fake_api: FakeApi, make_client: Callable[..., ApiClient]
    ) -> None:
        fake_api.json("POST", "/api/v1/documents/upload", {"data": DOCUMENT}, 201)
        fake_api.add(
            "GET",
            "/api/v1/documents/d1/download",
            lambda request: httpx.Response(200, content=b"%PDF-1.7"),
        )
        fake_api.json("DELETE", "/api/v1/documents/d1", {"message": "deleted"})
        repo = ApiDocumentRepository(make_client())

        uploaded = await repo.upload_document("Report.PDF", b"%PDF-1.7", "application/pdf")
        content = await repo.download_document("d1")
        await repo.delete_document("d1")

        assert uploaded.id == "d1"
        assert content == b"%PDF-1.7"
        assert [r.method for r in fake_api.requests] == ["POST", "GET", "DELETE"]
