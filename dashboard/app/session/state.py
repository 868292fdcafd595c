"""Observable session state.

The snapshot is derived from the credential store's cached user plus a
best-effort profile fetch whenever tokens are present. Every transition that
establishes a session writes tokens and user in one store call and publishes
one snapshot, so listeners never see a half-written session.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import ValidationError

from dashboard.app.api.errors import ApiError, SessionExpiredError
from dashboard.app.models.auth import (
    AuthResponse,
    EmailVerificationRequest,
    LoginRequest,
    RegisterRequest,
    SessionUser,
)
from dashboard.app.models.common import Theme
from dashboard.app.navigation import LoggingNavigator, Navigator, Route
from dashboard.app.repositories.base import AuthRepository
from dashboard.app.storage.base import CredentialStore

logger = logging.getLogger(__name__)

NO_REFRESH_TOKEN_MESSAGE = "No refresh token to revoke"

# Profile fields whose change is worth a cache write and a notification
PROFILE_FIELDS = ("email_verified", "email", "storage_quota_bytes", "storage_used_bytes")


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session published to listeners."""

    user: SessionUser | None = None
    is_authenticated: bool = False
    is_loading: bool = False

    @property
    def email_verification_required(self) -> bool:
        return self.user is not None and not self.user.email_verified


@dataclass(frozen=True)
class LogoutResult:
    """Outcome of a logout; local state is cleared regardless."""

    remote_succeeded: bool
    error: ApiError | None = None


SessionListener = Callable[[SessionSnapshot], None]


def profile_changed(cached: SessionUser, fresh: SessionUser) -> bool:
    """Check whether any profile field of interest differs."""
    return any(getattr(cached, name) != getattr(fresh, name) for name in PROFILE_FIELDS)


class SessionState:
    """Owns session transitions and notifies subscribers of each new snapshot."""

    def __init__(
        self,
        store: CredentialStore,
        auth: AuthRepository,
        navigator: Navigator | None = None,
    ) -> None:
        """Initialize session state.

        Args:
            store: Credential store holding tokens and the cached user
            auth: Auth endpoints
            navigator: Route sink (optional, defaults to a logging navigator)
        """
        self._store = store
        self._auth = auth
        self._navigator = navigator or LoggingNavigator()
        self._snapshot = SessionSnapshot(is_loading=True)
        # True once a session end has sent the user to the login route
        self._sent_to_login = False
        self._listeners: list[SessionListener] = []

    # Observation

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def user(self) -> SessionUser | None:
        return self._snapshot.user

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: SessionSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("[session] Listener failed")

    # Start-up and profile

    def hydrate(self) -> SessionSnapshot:
        """Reconcile persisted credentials into the first snapshot.

        A cached user without tokens is discarded. Tokens without a cached
        user still count as authenticated until the profile fetch settles.
        """
        authenticated = self._store.is_authenticated()
        user = self._store.get_user()
        if user is not None and not authenticated:
            logger.info("[session] Discarding cached user without tokens")
            self._store.clear_user()
            user = None

        if authenticated:
            self._sent_to_login = False
        self._publish(
            SessionSnapshot(user=user, is_authenticated=authenticated, is_loading=authenticated)
        )
        return self._snapshot

    async def refresh_profile(self) -> bool:
        """Fetch the current profile and reconcile it with the cached user.

        Returns:
            True if the session is still authenticated afterwards
        """
        if not self._store.is_authenticated():
            if self._snapshot.is_loading or self._snapshot.is_authenticated:
                self._publish(SessionSnapshot())
            return False

        try:
            fresh = await self._auth.get_current_user()
        except (ApiError, ValidationError) as e:
            logger.warning(f"[session] Profile fetch failed, ending session: {e!r}")
            self._end_session()
            return False

        cached = self._store.get_user()
        if cached is None or profile_changed(cached, fresh):
            self._store.set_user(fresh)
            self._publish(SessionSnapshot(user=fresh, is_authenticated=True))
        elif self._snapshot.is_loading or not self._snapshot.is_authenticated:
            self._publish(SessionSnapshot(user=cached, is_authenticated=True))
        return True

    # Transitions

    async def login(self, credentials: LoginRequest) -> SessionUser:
        """Log in and establish the session.

        Raises:
            ApiError: Credentials rejected or the server is unreachable
        """
        response = await self._auth.login(credentials)
        self._establish(response)
        if response.user.email_verified:
            self._navigator.navigate(Route.DASHBOARD)
        else:
            self._navigator.navigate(Route.VERIFY_EMAIL)
        return response.user

    async def register(self, data: RegisterRequest) -> SessionUser:
        response = await self._auth.register(data)
        self._establish(response)
        self._navigator.navigate(Route.VERIFY_EMAIL)
        return response.user

    async def verify_email(self, data: EmailVerificationRequest) -> SessionUser | None:
        """Submit a verification code, then re-read the profile."""
        response = await self._auth.verify_email(data)
        if response is not None:
            self._establish(response)
        else:
            user = self._store.get_user()
            if user is not None and not user.email_verified:
                verified = user.model_copy(update={"email_verified": True})
                self._store.set_user(verified)
                self._publish(
                    SessionSnapshot(user=verified, is_authenticated=self._store.is_authenticated())
                )

        if self._store.is_authenticated() and await self.refresh_profile():
            self._navigator.navigate(Route.DASHBOARD)
        return self._snapshot.user

    async def resend_verification(self, email: str) -> None:
        await self._auth.resend_verification(email)

    async def logout(self) -> LogoutResult:
        """Revoke this device's refresh token (best-effort) and end the session."""
        refresh_token = self._store.get_refresh_token()
        error: ApiError | None = None
        if not refresh_token:
            logger.info("[session] No refresh token to revoke, clearing locally")
            error = ApiError(NO_REFRESH_TOKEN_MESSAGE)
        else:
            try:
                await self._auth.logout(refresh_token)
            except ApiError as e:
                logger.warning(f"[session] Remote logout failed, clearing locally: {e.message}")
                error = e
        self._end_session(always_navigate=True)
        return LogoutResult(remote_succeeded=error is None, error=error)

    async def logout_all(self) -> LogoutResult:
        """Revoke every refresh token of the user (best-effort) and end the session."""
        error: ApiError | None = None
        try:
            await self._auth.logout_all()
        except ApiError as e:
            logger.warning(f"[session] Remote logout-all failed, clearing locally: {e.message}")
            error = e
        self._end_session(always_navigate=True)
        return LogoutResult(remote_succeeded=error is None, error=error)

    def expire(self, error: SessionExpiredError) -> None:
        """Session-expired listener for the refresh coordinator."""
        logger.info(f"[session] Session expired: {error.message}")
        self._end_session(always_navigate=not self._sent_to_login)

    # Preferences

    def get_theme(self) -> Theme:
        return self._store.get_theme() or Theme.system

    def set_theme(self, theme: Theme) -> None:
        self._store.set_theme(theme)

    # Internals

    def _establish(self, response: AuthResponse) -> None:
        self._store.set_session(response.tokens, response.user)
        self._sent_to_login = False
        self._publish(SessionSnapshot(user=response.user, is_authenticated=True))

    def _end_session(self, *, always_navigate: bool = False) -> None:
        was_active = (
            self._snapshot.is_authenticated
            or self._snapshot.user is not None
            or self._store.is_authenticated()
        )
        self._store.clear()
        if was_active or self._snapshot.is_loading:
            self._publish(SessionSnapshot())
        # One navigation per session end
        if was_active or always_navigate:
            self._navigator.navigate(Route.LOGIN)
            self._sent_to_login = True
