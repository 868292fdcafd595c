"""HTTP implementation of AuthRepository."""

from dashboard.app.api import endpoints
from dashboard.app.api.client import ApiClient, unwrap_envelope
from dashboard.app.models.auth import (
    AuthResponse,
    AuthTokens,
    EmailVerificationRequest,
    LoginRequest,
    RegisterRequest,
    SessionUser,
)


class ApiAuthRepository:
    """Auth endpoints under /api/v1/auth."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def login(self, credentials: LoginRequest) -> AuthResponse:
        # Unauthenticated: a 401 here means bad credentials, not an expired token
        payload = await self._client.post(
            endpoints.AUTH_LOGIN, credentials.to_wire(), authenticated=False
        )
        return AuthResponse.model_validate(unwrap_envelope(payload))

    async def register(self, data: RegisterRequest) -> AuthResponse:
        payload = await self._client.post(
            endpoints.AUTH_REGISTER, data.to_wire(), authenticated=False
        )
        return AuthResponse.model_validate(unwrap_envelope(payload))

    async def logout(self, refresh_token: str) -> None:
        await self._client.post(endpoints.AUTH_LOGOUT, {"refreshToken": refresh_token})

    async def logout_all(self) -> None:
        await self._client.post(endpoints.AUTH_LOGOUT_ALL)

    async def refresh_token(self, refresh_token: str) -> AuthTokens:
        return await self._client.exchange_refresh_token(refresh_token)

    async def verify_email(self, data: EmailVerificationRequest) -> AuthResponse | None:
        payload = unwrap_envelope(
            await self._client.post(endpoints.AUTH_VERIFY_EMAIL, data.to_wire())
        )
        if isinstance(payload, dict) and {"user", "accessToken", "refreshToken"} <= payload.keys():
            return AuthResponse.model_validate(payload)
        return None

    async def resend_verification(self, email: str) -> None:
        await self._client.post(endpoints.AUTH_RESEND_VERIFICATION, {"email": email})

    async def get_current_user(self) -> SessionUser:
        # Profile freshness check is best-effort: no transient retries
        payload = unwrap_envelope(await self._client.get(endpoints.AUTH_PROFILE, retries=0))
        if isinstance(payload, dict) and "user" in payload:
            payload = payload["user"]
        return SessionUser.model_validate(payload)
