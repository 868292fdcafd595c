"""Composition root - wires settings, transport, pipeline, repositories and session."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx

from dashboard.app.api.client import ApiClient, ProgressCallback
from dashboard.app.api.errors import ApiError
from dashboard.app.api.retry import RetryPolicies
from dashboard.app.config import Settings, get_settings
from dashboard.app.documents.aggregator import (
    DocumentCategoryAggregator,
    fetch_documents_with_categories,
)
from dashboard.app.documents.polling import DocumentListPoller
from dashboard.app.models.documents import (
    Document,
    DocumentFilterOptions,
    DocumentListResponse,
    UploadRejectedError,
    upload_rejection_reason,
)
from dashboard.app.navigation import LoggingNavigator, Navigator
from dashboard.app.repositories.auth import ApiAuthRepository
from dashboard.app.repositories.categories import ApiCategoryRepository
from dashboard.app.repositories.documents import ApiDocumentRepository
from dashboard.app.session.state import SessionState
from dashboard.app.storage.base import CredentialStore
from dashboard.app.storage.file import FileCredentialStore
from dashboard.app.utils.logging import StructuredRequestLogger
from dashboard.app.utils.metrics import PrometheusRequestMetrics

logger = logging.getLogger(__name__)


@dataclass
class Dashboard:
    """Everything the presentation layer talks to, sharing one HTTP client."""

    settings: Settings
    client: ApiClient
    session: SessionState
    auth: ApiAuthRepository
    categories: ApiCategoryRepository
    documents: ApiDocumentRepository
    aggregator: DocumentCategoryAggregator
    poller: DocumentListPoller | None = field(default=None)
    on_update: Callable[[DocumentListResponse], None] | None = field(default=None, repr=False)
    watch_filters: DocumentFilterOptions | None = field(default=None)

    async def list_documents(
        self, filters: DocumentFilterOptions | None = None
    ) -> DocumentListResponse:
        """One page of documents with their categories resolved."""
        return await fetch_documents_with_categories(
            self.documents, filters, aggregator=self.aggregator
        )

    async def watch_documents(
        self,
        on_update: Callable[[DocumentListResponse], None],
        filters: DocumentFilterOptions | None = None,
    ) -> DocumentListResponse:
        """Fetch the list now, then keep refreshing it while categorization is pending.

        `on_update` receives the initial listing and every polled one.
        """
        await self.stop_watching()
        self.on_update = on_update
        self.watch_filters = filters
        listing = await self.list_documents(filters)
        on_update(listing)

        self.poller = DocumentListPoller(
            lambda: self.list_documents(filters),
            on_update,
            interval_seconds=self.settings.document_poll_interval_seconds,
            recent_window_seconds=self.settings.recent_document_window_seconds,
        )
        self.poller.schedule(listing)
        return listing

    async def stop_watching(self) -> None:
        if self.poller is not None:
            await self.poller.stop()
            self.poller = None
        self.on_update = None
        self.watch_filters = None

    async def upload_document(
        self,
        filename: str,
        content: bytes,
        mime_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> Document:
        """Upload after the local size, type and quota checks pass.

        While a watch is active the list is re-fetched afterwards and handed to
        its callback, which restarts polling for the new uncategorized document.

        Raises:
            UploadRejectedError: The file fails a local check (nothing is sent)
            ApiError: The server rejected the upload
        """
        user = self.session.user
        reason = upload_rejection_reason(
            len(content),
            mime_type,
            max_bytes=self.settings.max_upload_bytes,
            remaining_bytes=user.remaining_storage_bytes if user is not None else None,
        )
        if reason is not None:
            logger.info(f"[upload] Rejected {filename} locally: {reason}")
            raise UploadRejectedError(reason)
        document = await self.documents.upload_document(filename, content, mime_type, on_progress)
        await self._refresh_watch()
        return document

    async def _refresh_watch(self) -> None:
        if self.poller is None or self.on_update is None:
            return
        try:
            listing = await self.list_documents(self.watch_filters)
        except ApiError as e:
            logger.warning(f"[upload] Could not refresh watched list: {e.message}")
            return
        self.on_update(listing)
        self.poller.schedule(listing)

    async def aclose(self) -> None:
        await self.stop_watching()


def build_dashboard(
    http: httpx.AsyncClient,
    store: CredentialStore,
    settings: Settings,
    navigator: Navigator | None = None,
) -> Dashboard:
    """Wire components over an existing HTTP client; the caller owns `http`."""
    metrics = PrometheusRequestMetrics()
    client = ApiClient(
        http,
        store,
        timeout_seconds=settings.request_timeout_seconds,
        retry_policies=RetryPolicies.from_settings(settings),
        metrics=metrics,
        logger=StructuredRequestLogger(),
        refresh_metrics=metrics,
    )
    auth = ApiAuthRepository(client)
    documents = ApiDocumentRepository(client)
    session = SessionState(store, auth, navigator or LoggingNavigator())
    client.refresh_coordinator.add_session_expired_listener(session.expire)

    return Dashboard(
        settings=settings,
        client=client,
        session=session,
        auth=auth,
        categories=ApiCategoryRepository(client),
        documents=documents,
        aggregator=DocumentCategoryAggregator(documents),
    )


@asynccontextmanager
async def create_dashboard(
    settings: Settings | None = None,
    *,
    store: CredentialStore | None = None,
    navigator: Navigator | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[Dashboard]:
    """Open a dashboard session for the lifetime of the context.

    Args:
        settings: Settings (default: cached environment settings)
        store: Credential store (default: JSON file at settings.credential_store_path)
        navigator: Route sink (default: logging navigator)
        transport: httpx transport override, e.g. a mock or ASGI app in tests

    Yields:
        A hydrated Dashboard; the profile has been reconciled if tokens were stored
    """
    settings = settings or get_settings()
    store = store or FileCredentialStore(settings.credential_store_path)

    async with httpx.AsyncClient(base_url=settings.api_base_url, transport=transport) as http:
        dashboard = build_dashboard(http, store, settings, navigator)
        dashboard.session.hydrate()
        await dashboard.session.refresh_profile()
        logger.info(f"[dashboard] Ready against {settings.api_base_url}")
        try:
            yield dashboard
        finally:
            await dashboard.aclose()
