"""Single-flight access-token refresh.

State machine with two states:

    IDLE --(401 on a not-yet-retried call)--> REFRESHING
    REFRESHING --(exchange settles)--> IDLE

While REFRESHING, every caller that needs a fresh token is parked as a
PendingRequest in a FIFO queue instead of starting another exchange. The
exchange itself runs in its own task; the caller that triggered it is simply
the first entry in the queue. When the exchange settles the queue is released
in order: each waiter is resumed with the new access token, or failed with
the refresh error.

A failed exchange is terminal for the session: stored credentials are
cleared and session-expiry listeners are notified. The refresh itself is
never retried.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from dashboard.app.api.errors import ApiError, SessionExpiredError
from dashboard.app.models.auth import AuthTokens
from dashboard.app.storage.base import CredentialStore

logger = logging.getLogger(__name__)

TokenExchange = Callable[[str], Awaitable[AuthTokens]]
SessionExpiredListener = Callable[[SessionExpiredError], None]


class RefreshState(str, Enum):
    """Coordinator state."""

    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass
class PendingRequest:
    """A caller suspended until the in-flight refresh settles."""

    future: asyncio.Future[str]

    def resume(self, access_token: str) -> None:
        """Hand the new access token to the waiting caller."""
        if not self.future.done():
            self.future.set_result(access_token)

    def fail(self, error: BaseException) -> None:
        """Reject the waiting caller with the refresh failure."""
        if not self.future.done():
            self.future.set_exception(error)


class RefreshMetrics:
    """Interface for refresh outcome metrics."""

    def inc_refresh(self, outcome: str) -> None:
        """Count one refresh exchange by outcome."""
        pass


class TokenRefreshCoordinator:
    """Ensures at most one refresh-token exchange is in flight."""

    def __init__(
        self,
        store: CredentialStore,
        exchange: TokenExchange,
        *,
        metrics: RefreshMetrics | None = None,
    ) -> None:
        """Initialize coordinator.

        Args:
            store: Credential store holding the refresh token
            exchange: Coroutine trading a refresh token for a new token pair
            metrics: Refresh metrics (optional, defaults to no-op)
        """
        self._store = store
        self._exchange = exchange
        self._metrics = metrics or RefreshMetrics()
        self._state = RefreshState.IDLE
        self._queue: deque[PendingRequest] = deque()
        self._task: asyncio.Task[None] | None = None
        self._listeners: list[SessionExpiredListener] = []
        self._exchange_count = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def pending_count(self) -> int:
        """Number of callers parked behind the in-flight refresh."""
        return len(self._queue)

    @property
    def exchange_count(self) -> int:
        """Total refresh exchanges started since construction."""
        return self._exchange_count

    def add_session_expired_listener(self, listener: SessionExpiredListener) -> None:
        """Register a callback run after a failed refresh has cleared credentials."""
        self._listeners.append(listener)

    async def obtain_token(self) -> str:
        """Get a fresh access token, starting a refresh only if none is in flight.

        Returns:
            The new access token

        Raises:
            SessionExpiredError: The refresh exchange failed
        """
        loop = asyncio.get_running_loop()
        pending = PendingRequest(future=loop.create_future())
        self._queue.append(pending)

        if self._state is RefreshState.IDLE:
            self._state = RefreshState.REFRESHING
            self._exchange_count += 1
            self._task = loop.create_task(self._run_exchange())
        else:
            logger.debug(f"[refresh] Queued behind in-flight refresh (waiting={len(self._queue)})")

        return await pending.future

    async def wait_idle(self) -> None:
        """Wait for an in-flight refresh to settle (no-op when idle)."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _run_exchange(self) -> None:
        logger.info("[refresh] Access token rejected, exchanging refresh token")
        try:
            refresh_token = self._store.get_refresh_token()
            if not refresh_token:
                raise ApiError("No refresh token available", 0)
            tokens = await self._exchange(refresh_token)
        except Exception as e:
            self._fail(e)
            return
        except asyncio.CancelledError:
            self._fail(ApiError("Token refresh was cancelled", 0))
            raise

        self._store.set_tokens(tokens)
        self._state = RefreshState.IDLE
        self._metrics.inc_refresh("success")
        logger.info(f"[refresh] Token refreshed, replaying {len(self._queue)} request(s)")
        for pending in self._drain():
            pending.resume(tokens.access_token)

    def _fail(self, cause: BaseException) -> None:
        if isinstance(cause, SessionExpiredError):
            error = cause
        else:
            error = SessionExpiredError(cause)
            error.__cause__ = cause

        self._state = RefreshState.IDLE
        self._metrics.inc_refresh("failure")
        logger.warning(
            f"[refresh] Token refresh failed ({type(cause).__name__}); "
            f"rejecting {len(self._queue)} request(s) and ending session"
        )
        for pending in self._drain():
            pending.fail(error)

        self._store.clear()
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("[refresh] Session-expired listener failed")

    def _drain(self) -> list[PendingRequest]:
        drained = list(self._queue)
        self._queue.clear()
        return drained
