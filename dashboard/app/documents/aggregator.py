"""Document-category aggregator - joins documents with their category details.

For each document: fetch its assignment records, then fetch each referenced
category and merge the pair into a CategoryRef. Every document and every
lookup inside a document runs concurrently (fan-out), then joins (fan-in).

Failures never escape a branch:
- a failed category lookup drops just that category from the document
- a failed assignment lookup leaves the document with no categories

Within one pass, lookups of the same category id share a single request.
"""

import asyncio
import logging
from collections.abc import Sequence

from dashboard.app.models.categories import Category, CategoryRef, DocumentCategoryAssignment
from dashboard.app.models.documents import (
    Document,
    DocumentFilterOptions,
    DocumentListResponse,
)
from dashboard.app.repositories.base import CategoryLookup, DocumentRepository

logger = logging.getLogger(__name__)


class _CategoryCache:
    """Single-flight category lookups for one aggregation pass."""

    def __init__(self, lookup: CategoryLookup) -> None:
        self._lookup = lookup
        self._tasks: dict[str, asyncio.Task[Category]] = {}

    async def get(self, category_id: str) -> Category:
        task = self._tasks.get(category_id)
        if task is None:
            task = asyncio.ensure_future(self._lookup.get_category(category_id))
            self._tasks[category_id] = task
        # Shielded so one waiter going away does not cancel the shared lookup
        return await asyncio.shield(task)

    def settle(self) -> None:
        """Mark failures as retrieved so unshared failed tasks don't log noise."""
        for task in self._tasks.values():
            if task.done() and not task.cancelled():
                task.exception()


class DocumentCategoryAggregator:
    """Enriches documents with denormalized category references."""

    def __init__(self, lookup: CategoryLookup) -> None:
        """Initialize aggregator.

        Args:
            lookup: Source of assignment records and category details
        """
        self._lookup = lookup

    async def enrich(self, documents: Sequence[Document]) -> list[Document]:
        """Attach resolved categories to every document.

        Returns:
            New Document objects, in input order; never raises for lookup failures
        """
        cache = _CategoryCache(self._lookup)
        try:
            return list(await asyncio.gather(*(self._enrich_one(doc, cache) for doc in documents)))
        finally:
            cache.settle()

    async def _enrich_one(self, document: Document, cache: _CategoryCache) -> Document:
        try:
            assignments = await self._lookup.get_document_categories(document.id)
        except Exception as e:
            logger.warning(
                f"[aggregator] Failed to fetch categories for document {document.id}: {e!r}"
            )
            return document.model_copy(update={"categories": []})

        resolved = await asyncio.gather(
            *(self._resolve(document.id, assignment, cache) for assignment in assignments)
        )
        categories = [ref for ref in resolved if ref is not None]
        return document.model_copy(update={"categories": categories})

    async def _resolve(
        self,
        document_id: str,
        assignment: DocumentCategoryAssignment,
        cache: _CategoryCache,
    ) -> CategoryRef | None:
        try:
            category = await cache.get(assignment.category_id)
        except Exception as e:
            logger.warning(
                f"[aggregator] Failed to fetch category {assignment.category_id} "
                f"for document {document_id}: {e!r}"
            )
            return None
        return CategoryRef.from_assignment(assignment, category)


async def fetch_documents_with_categories(
    repository: DocumentRepository,
    filters: DocumentFilterOptions | None = None,
    aggregator: DocumentCategoryAggregator | None = None,
) -> DocumentListResponse:
    """List documents, then join each with its categories.

    The list call itself is not retried and its failure propagates: without it
    there is nothing to render. Per-document lookups never fail the listing.
    """
    listing = await repository.list_documents(filters, retries=0)
    aggregator = aggregator or DocumentCategoryAggregator(repository)
    documents = await aggregator.enrich(listing.documents)
    return listing.model_copy(update={"documents": documents})
