"""Authenticated request pipeline.

Every remote call goes through `ApiClient`, which:
- attaches the stored access token as a bearer credential
- passes successful responses through unchanged
- on a 401, replays with the stored token if another call already refreshed it,
  otherwise obtains a fresh token from the refresh coordinator; either way the
  call is replayed exactly once (one-shot per call, so a server that keeps rejecting
  refreshed tokens cannot cause a refresh loop)
- normalizes every other failure into `ApiError`
- retries transient failures (network, 5xx) within per-method caps
- enforces a per-call timeout; exceeding it is a no-response network error
- reports fractional progress for uploads and downloads

The underlying `httpx.AsyncClient` is injected and shared; this class never
creates or closes it.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from dashboard.app.api.endpoints import AUTH_REFRESH
from dashboard.app.api.errors import ApiError
from dashboard.app.api.refresh import RefreshMetrics, TokenRefreshCoordinator
from dashboard.app.api.retry import RetryPolicies, RetryPolicy, call_with_retries
from dashboard.app.models.auth import AuthTokens
from dashboard.app.storage.base import CredentialStore

ProgressCallback = Callable[[float], None]


def unwrap_envelope(payload: Any) -> Any:
    """Return `payload["data"]` for `{data: T}` envelopes, else the payload itself."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


@dataclass(frozen=True)
class RequestContext:
    """Identifies a call for logging and metrics."""

    method: str
    path: str


# Metrics interface (implemented by utils.metrics)
class RequestMetrics:
    """Interface for request metrics."""

    def record_latency(self, method: str, outcome: str, latency_ms: float) -> None:
        """Record one attempt's latency."""
        pass

    def inc_error(self, method: str, kind: str) -> None:
        """Increment error counter."""
        pass


# Logging interface (implemented by utils.logging)
class RequestLogger:
    """Interface for structured request logging."""

    def log_attempt(
        self,
        ctx: RequestContext,
        attempt: int,
        outcome: str,
        latency_ms: float,
        status_code: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one request attempt."""
        pass


@dataclass
class _Call:
    """One logical call; rebuilt into a fresh httpx.Request per attempt."""

    method: str
    path: str
    params: dict[str, Any] | None = None
    json: Any = None
    files: dict[str, tuple[str, bytes, str]] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    authenticated: bool = True
    stream: bool = False
    on_upload_progress: ProgressCallback | None = None
    # Set once the call has triggered (or waited on) a token refresh
    retried: bool = False
    attempts: int = 0

    @property
    def ctx(self) -> RequestContext:
        return RequestContext(method=self.method, path=self.path)


class _UploadProgressStream(httpx.AsyncByteStream):
    """Wraps a request body and reports the fraction of bytes handed to the transport."""

    def __init__(self, inner: Any, total: int, on_progress: ProgressCallback) -> None:
        self._inner = inner
        self._total = total
        self._on_progress = on_progress

    async def __aiter__(self) -> AsyncIterator[bytes]:
        sent = 0
        async for chunk in self._inner:
            sent += len(chunk)
            if self._total > 0:
                self._on_progress(min(sent / self._total, 1.0))
            yield chunk


class ApiClient:
    """Shared HTTP client wrapper used by every repository."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: CredentialStore,
        *,
        timeout_seconds: float = 30.0,
        retry_policies: RetryPolicies | None = None,
        metrics: RequestMetrics | None = None,
        logger: RequestLogger | None = None,
        refresh_metrics: RefreshMetrics | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize client.

        Args:
            http: Shared httpx client (base_url should point at the API host)
            store: Credential store providing tokens
            timeout_seconds: Maximum duration of a single attempt
            retry_policies: Read/mutation retry caps (default: 3 reads, 2 mutations)
            metrics: Request metrics (optional, defaults to no-op)
            logger: Structured request logger (optional, defaults to no-op)
            refresh_metrics: Refresh outcome metrics (optional, defaults to no-op)
            sleep_fn: Injectable sleep used between retries (default: asyncio.sleep)
        """
        self._http = http
        self._store = store
        self._timeout = httpx.Timeout(timeout_seconds)
        self._retry_policies = retry_policies or RetryPolicies(
            read=RetryPolicy(max_retries=3), mutation=RetryPolicy(max_retries=2)
        )
        self._metrics = metrics or RequestMetrics()
        self._logger = logger or RequestLogger()
        self._sleep = sleep_fn or asyncio.sleep
        self.refresh_coordinator = TokenRefreshCoordinator(
            store, self.exchange_refresh_token, metrics=refresh_metrics
        )

    @property
    def store(self) -> CredentialStore:
        return self._store

    # JSON calls

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        retries: int | None = None,
        authenticated: bool = True,
    ) -> Any:
        return await self.request(
            "GET", path, params=params, retries=retries, authenticated=authenticated
        )

    async def post(
        self,
        path: str,
        json: Any = None,
        *,
        params: dict[str, Any] | None = None,
        retries: int | None = None,
        authenticated: bool = True,
    ) -> Any:
        return await self.request(
            "POST", path, json=json, params=params, retries=retries, authenticated=authenticated
        )

    async def put(
        self,
        path: str,
        json: Any = None,
        *,
        retries: int | None = None,
    ) -> Any:
        return await self.request("PUT", path, json=json, retries=retries)

    async def delete(self, path: str, *, retries: int | None = None) -> Any:
        return await self.request("DELETE", path, retries=retries)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        retries: int | None = None,
        authenticated: bool = True,
    ) -> Any:
        """Send a JSON request through the full pipeline.

        Args:
            method: HTTP method
            path: Path relative to the client's base URL
            json: JSON body (optional)
            params: Query parameters (optional)
            retries: Override the method's transient retry cap (0 disables)
            authenticated: Attach the bearer token and refresh on 401

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            ApiError: Normalized failure (SessionExpiredError if refresh failed)
        """
        call = _Call(
            method=method.upper(),
            path=path,
            params=params,
            json=json,
            authenticated=authenticated,
        )
        response = await self._send_with_retries(call, retries)
        return self._decode(response)

    # File transfer

    async def upload_file(
        self,
        path: str,
        *,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        field_name: str = "file",
        on_progress: ProgressCallback | None = None,
        retries: int | None = None,
    ) -> Any:
        """Upload one file as multipart/form-data.

        `on_progress` receives the fraction (0.0-1.0) of the body sent so far;
        it restarts from zero if the upload is replayed or retried.
        """
        call = _Call(
            method="POST",
            path=path,
            files={field_name: (filename, content, content_type)},
            on_upload_progress=on_progress,
        )
        response = await self._send_with_retries(call, retries)
        return self._decode(response)

    async def download_file(
        self,
        path: str,
        *,
        on_progress: ProgressCallback | None = None,
        retries: int | None = None,
    ) -> bytes:
        """Download a binary body, reporting the fraction received so far."""
        call = _Call(method="GET", path=path, stream=True)
        response = await self._send_with_retries(call, retries)

        total = _content_length(response)
        received = 0
        last_reported = 0.0
        chunks: list[bytes] = []
        try:
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
                received += len(chunk)
                if on_progress is not None and total > 0:
                    last_reported = min(received / total, 1.0)
                    on_progress(last_reported)
        except httpx.TransportError as e:
            self._metrics.inc_error(call.method, "network")
            raise ApiError.network() from e
        finally:
            await response.aclose()

        if on_progress is not None and last_reported < 1.0:
            on_progress(1.0)
        return b"".join(chunks)

    # Token exchange

    async def exchange_refresh_token(self, refresh_token: str) -> AuthTokens:
        """Trade a refresh token for a new token pair.

        Sent unauthenticated and outside the refresh/retry machinery: a 401
        here means the refresh token itself is no longer valid.
        """
        call = _Call(
            method="POST",
            path=AUTH_REFRESH,
            json={"refreshToken": refresh_token},
            authenticated=False,
        )
        response = await self._send(call)
        return AuthTokens.model_validate(unwrap_envelope(self._decode(response)))

    # Internals

    async def _send_with_retries(self, call: _Call, retries: int | None) -> httpx.Response:
        policy = self._retry_policies.for_method(call.method)
        if retries is not None:
            policy = policy.with_max_retries(retries)
        return await call_with_retries(
            lambda: self._send(call),
            policy,
            description=f"{call.method} {call.path}",
            sleep_fn=self._sleep,
        )

    async def _send(self, call: _Call) -> httpx.Response:
        token = self._store.get_access_token() if call.authenticated else None
        response = await self._send_once(call, token)

        if response.status_code == 401 and call.authenticated and not call.retried:
            call.retried = True
            await response.aclose()
            stored = self._store.get_access_token()
            if stored and stored != token:
                # Another call refreshed while this one was in flight
                token = stored
            else:
                token = await self.refresh_coordinator.obtain_token()
            response = await self._send_once(call, token)

        if response.is_error:
            if call.stream:
                await response.aread()
            await response.aclose()
            error = ApiError.from_response(response)
            self._metrics.inc_error(call.method, error.kind.value)
            raise error

        return response

    async def _send_once(self, call: _Call, token: str | None) -> httpx.Response:
        call.attempts += 1
        ctx = call.ctx
        start = time.monotonic()

        try:
            request = self._build_request(call, token)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            self._observe(ctx, call.attempts, start, "unbuildable", error_reason=type(e).__name__)
            self._metrics.inc_error(call.method, "unexpected")
            raise ApiError.unexpected(e) from e

        try:
            response = await self._http.send(request, stream=call.stream)
        except httpx.UnsupportedProtocol as e:
            self._observe(ctx, call.attempts, start, "unbuildable", error_reason=type(e).__name__)
            self._metrics.inc_error(call.method, "unexpected")
            raise ApiError.unexpected(e) from e
        except httpx.TimeoutException as e:
            self._observe(ctx, call.attempts, start, "timeout", error_reason=type(e).__name__)
            self._metrics.inc_error(call.method, "network")
            raise ApiError.network() from e
        except httpx.TransportError as e:
            self._observe(ctx, call.attempts, start, "network_error", error_reason=type(e).__name__)
            self._metrics.inc_error(call.method, "network")
            raise ApiError.network() from e
        except httpx.HTTPError as e:
            self._observe(ctx, call.attempts, start, "error", error_reason=type(e).__name__)
            self._metrics.inc_error(call.method, "unexpected")
            raise ApiError.unexpected(e) from e

        outcome = "success" if not response.is_error else f"http_{response.status_code}"
        self._observe(ctx, call.attempts, start, outcome, status_code=response.status_code)
        return response

    def _build_request(self, call: _Call, token: str | None) -> httpx.Request:
        headers = {"Accept": "application/json", **call.headers}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        request = self._http.build_request(
            call.method,
            call.path,
            params=call.params,
            json=call.json,
            files=call.files,
            headers=headers,
            timeout=self._timeout,
        )

        if call.on_upload_progress is not None:
            total = int(request.headers.get("Content-Length") or 0)
            request.stream = _UploadProgressStream(request.stream, total, call.on_upload_progress)

        return request

    def _observe(
        self,
        ctx: RequestContext,
        attempt: int,
        start: float,
        outcome: str,
        status_code: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(ctx.method, outcome, elapsed_ms)
        self._logger.log_attempt(
            ctx,
            attempt,
            outcome,
            elapsed_ms,
            status_code=status_code,
            error_reason=error_reason,
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in response", response.status_code) from e


def _content_length(response: httpx.Response) -> int:
    try:
        return int(response.headers.get("Content-Length") or 0)
    except ValueError:
        return 0
