"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from dashboard.app.api.client import ApiClient
from dashboard.app.models.auth import AuthTokens
from dashboard.app.storage.inmemory import InMemoryCredentialStore
from tests.fakes import FakeApi, RecordingSleep


@pytest.fixture
def tokens() -> AuthTokens:
    return AuthTokens(access_token="access-1", refresh_token="refresh-1")


@pytest.fixture
def store() -> InMemoryCredentialStore:
    """Empty in-memory credential store."""
    return InMemoryCredentialStore()


@pytest.fixture
def signed_in_store(tokens: AuthTokens) -> InMemoryCredentialStore:
    """Credential store holding a token pair."""
    store = InMemoryCredentialStore()
    store.set_tokens(tokens)
    return store


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture
async def http(fake_api: FakeApi) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx client wired to the fake API."""
    async with httpx.AsyncClient(base_url="http://testserver", transport=fake_api.transport) as c:
        yield c


@pytest.fixture
def make_client(
    http: httpx.AsyncClient, signed_in_store: InMemoryCredentialStore, no_sleep: RecordingSleep
) -> Callable[..., ApiClient]:
    """Factory for ApiClient over the fake API; defaults to the signed-in store."""

    def _make(**kwargs: Any) -> ApiClient:
        store = kwargs.pop("store", signed_in_store)
        kwargs.setdefault("sleep_fn", no_sleep)
        return ApiClient(http, store, **kwargs)

    return _make
