"""Tests for transient-error retries."""

import pytest

from dashboard.app.api.errors import ApiError
from dashboard.app.api.retry import RetryPolicies, RetryPolicy, call_with_retries
from dashboard.app.config import Settings
from tests.fakes import RecordingSleep


class Flaky:
    """Fails with the queued errors, then succeeds."""

    def __init__(self, *errors: ApiError) -> None:
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


class TestRetryPolicy:
    """Test retry decisions."""

    def test_transient_errors_retry_until_cap(self) -> None:
        policy = RetryPolicy(max_retries=2)
        assert policy.should_retry(ApiError.network(), 0) is True
        assert policy.should_retry(ApiError("x", 500), 1) is True
        assert policy.should_retry(ApiError("x", 500), 2) is False

    def test_client_errors_never_retry(self) -> None:
        policy = RetryPolicy(max_retries=3)
        for status in (400, 401, 403, 404, 409, 422):
            assert policy.should_retry(ApiError("x", status), 0) is False

    def test_unexpected_errors_never_retry(self) -> None:
        assert RetryPolicy(max_retries=3).should_retry(ApiError.unexpected(), 0) is False

    def test_delay_within_jitter_bounds(self) -> None:
        policy = RetryPolicy(max_retries=1, jitter_min_ms=200, jitter_max_ms=500)
        for _ in range(50):
            assert 0.2 <= policy.next_delay_seconds() <= 0.5

    def test_policies_by_method(self) -> None:
        policies = RetryPolicies.from_settings(Settings(read_retry_count=3, mutation_retry_count=2))
        assert policies.for_method("GET").max_retries == 3
        assert policies.for_method("head").max_retries == 3
        assert policies.for_method("POST").max_retries == 2
        assert policies.for_method("DELETE").max_retries == 2


class TestCallWithRetries:
    """Test the retry loop."""

    @pytest.mark.asyncio
    async def test_success_after_transient_failures(self) -> None:
        fn = Flaky(ApiError.network(), ApiError("x", 503))
        sleep = RecordingSleep()

        result = await call_with_retries(fn, RetryPolicy(max_retries=3), sleep_fn=sleep)

        assert result == "ok"
        assert fn.calls == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_cap(self) -> None:
        fn = Flaky(*[ApiError("x", 500) for _ in range(5)])
        sleep = RecordingSleep()

        with pytest.raises(ApiError) as exc_info:
            await call_with_retries(fn, RetryPolicy(max_retries=2), sleep_fn=sleep)

        assert exc_info.value.status_code == 500
        assert fn.calls == 3

    @pytest.mark.asyncio
    async def test_client_error_fails_immediately(self) -> None:
        fn = Flaky(ApiError("gone", 404))
        sleep = RecordingSleep()

        with pytest.raises(ApiError, match="gone"):
            await call_with_retries(fn, RetryPolicy(max_retries=3), sleep_fn=sleep)

        assert fn.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_zero_retries(self) -> None:
        fn = Flaky(ApiError.network())
        with pytest.raises(ApiError):
            await call_with_retries(
                fn, RetryPolicy(max_retries=3).with_max_retries(0), sleep_fn=RecordingSleep()
            )
        assert fn.calls == 1
