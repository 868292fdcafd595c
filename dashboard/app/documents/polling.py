"""Background refresh of the document list while categorization is pending.

Freshly uploaded documents are categorized server-side a little later. While
any recent document is still uncategorized the list is re-fetched on a fixed
interval; after every fetch the same pure predicate decides whether to keep
going.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta, timezone

from dashboard.app.api.errors import ApiError, ErrorKind
from dashboard.app.models.documents import Document, DocumentListResponse

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def needs_polling(
    documents: Iterable[Document],
    *,
    now: datetime,
    recent_window: timedelta,
) -> bool:
    """True if some document younger than `recent_window` has no categories yet.

    Naive timestamps are read as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    for document in documents:
        created_at = document.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        if now - created_at < recent_window and not document.has_categories:
            return True
    return False


class DocumentListPoller:
    """Re-fetches the document list until recent documents are categorized."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[DocumentListResponse]],
        on_update: Callable[[DocumentListResponse], None],
        *,
        interval_seconds: float = 30.0,
        recent_window_seconds: float = 300,
        clock: Clock | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize poller.

        Args:
            fetch: Produces a fresh, enriched document listing
            on_update: Receives every listing fetched by the poller
            interval_seconds: Delay between fetches
            recent_window_seconds: Age under which an uncategorized document keeps polling alive
            clock: Current time source (default: UTC wall clock)
            sleep_fn: Injectable sleep (default: asyncio.sleep)
        """
        self._fetch = fetch
        self._on_update = on_update
        self._interval = interval_seconds
        self._recent_window = timedelta(seconds=recent_window_seconds)
        self._clock = clock or _utc_now
        self._sleep = sleep_fn or asyncio.sleep
        self._task: asyncio.Task[None] | None = None
        self.fetch_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def should_poll(self, documents: Iterable[Document]) -> bool:
        return needs_polling(documents, now=self._clock(), recent_window=self._recent_window)

    def schedule(self, listing: DocumentListResponse) -> bool:
        """Start polling if `listing` needs it and no poll loop is active.

        Returns:
            True if a poll loop is running after the call
        """
        if self.running:
            return True
        if not self.should_poll(listing.documents):
            return False
        logger.info(f"[poller] Uncategorized recent documents, polling every {self._interval}s")
        self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def stop(self) -> None:
        """Cancel the poll loop and wait for it to exit."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait(self) -> None:
        """Wait for the poll loop to finish on its own."""
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        while True:
            await self._sleep(self._interval)
            try:
                listing = await self._fetch()
            except ApiError as e:
                if e.kind is ErrorKind.AUTHENTICATION:
                    logger.info("[poller] Authentication lost, stopping")
                    return
                logger.warning(f"[poller] Refresh failed, retrying next tick: {e.message}")
                continue
            except Exception as e:
                logger.warning(f"[poller] Refresh failed, retrying next tick: {e!r}")
                continue

            self.fetch_count += 1
            try:
                self._on_update(listing)
            except Exception:
                logger.exception("[poller] Update callback failed")
            if not self.should_poll(listing.documents):
                logger.info("[poller] Recent documents categorized, stopping")
                return
