"""Authentication models - tokens, cached user and auth request payloads."""

from datetime import datetime

from pydantic import Field, model_validator

from dashboard.app.models.common import ApiModel, format_bytes


class AuthTokens(ApiModel):
    """Bearer access token plus the longer-lived refresh token."""

    access_token: str
    refresh_token: str


class SessionUser(ApiModel):
    """Cached copy of the authenticated user's profile."""

    id: str
    email: str
    email_verified: bool = False
    storage_quota_bytes: int = 0
    storage_used_bytes: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def storage_used_percentage(self) -> int:
        if self.storage_quota_bytes <= 0:
            return 0
        return round(self.storage_used_bytes / self.storage_quota_bytes * 100)

    @property
    def remaining_storage_bytes(self) -> int:
        return max(0, self.storage_quota_bytes - self.storage_used_bytes)

    @property
    def storage_used_formatted(self) -> str:
        return format_bytes(self.storage_used_bytes)

    @property
    def remaining_storage_formatted(self) -> str:
        return format_bytes(self.remaining_storage_bytes)

    def can_upload_file(self, file_size: int) -> bool:
        """Check whether a file of this size fits in the remaining quota."""
        return self.remaining_storage_bytes >= file_size


class AuthResponse(ApiModel):
    """Login/registration result: the user plus a fresh token pair."""

    user: SessionUser
    access_token: str
    refresh_token: str

    @property
    def tokens(self) -> AuthTokens:
        return AuthTokens(access_token=self.access_token, refresh_token=self.refresh_token)


class LoginRequest(ApiModel):
    """Credentials submitted by the login form."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class RegisterRequest(ApiModel):
    """Registration form payload."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def validate_passwords_match(self) -> "RegisterRequest":
        """Ensure the confirmation matches the password."""
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self

    def to_wire(self) -> dict[str, object]:
        """Serialize without the confirmation field, which the server never sees."""
        payload = super().to_wire()
        payload.pop("confirmPassword", None)
        return payload


class EmailVerificationRequest(ApiModel):
    """Email verification code submission."""

    email: str = Field(..., min_length=3)
    code: str = Field(..., min_length=6, max_length=6)
