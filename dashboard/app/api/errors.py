"""Normalized API error shape and taxonomy.

Every failure leaving the request pipeline is an `ApiError`, whatever
happened underneath:

- the server answered with an error status (status_code is that status)
- the request left the client but no response arrived (status_code 0)
- the request could not be constructed at all (status_code 0)
"""

from enum import Enum
from typing import Any

import httpx

NETWORK_ERROR_MESSAGE = "Network error - please check your connection"
DEFAULT_ERROR_MESSAGE = "An error occurred"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"
SESSION_EXPIRED_MESSAGE = "Session expired - please log in again"


class ErrorKind(str, Enum):
    """Error taxonomy used for retry decisions and presentation."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    CLIENT = "client"
    NETWORK = "network"
    SERVER = "server"
    UNEXPECTED = "unexpected"


class ApiError(Exception):
    """Uniform error raised by every remote call."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        *,
        error_code: str | None = None,
        validation: dict[str, list[str]] | None = None,
        no_response: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.validation = validation
        self._no_response = no_response

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Map an error envelope `{message, error?, validation?}`."""
        body: Any
        try:
            body = response.json()
        except ValueError:
            body = None

        message = DEFAULT_ERROR_MESSAGE
        error_code = None
        validation = None
        if isinstance(body, dict):
            if isinstance(body.get("message"), str) and body["message"]:
                message = body["message"]
            elif isinstance(body.get("message"), list) and body["message"]:
                # Some validation pipes return a list of messages
                message = "; ".join(str(m) for m in body["message"])
            if body.get("error") is not None:
                error_code = str(body["error"])
            validation = _coerce_validation(body.get("validation"))

        return cls(
            message,
            response.status_code,
            error_code=error_code,
            validation=validation,
        )

    @classmethod
    def network(cls) -> "ApiError":
        """Request was sent but no response arrived (network failure or timeout)."""
        return cls(NETWORK_ERROR_MESSAGE, 0, no_response=True)

    @classmethod
    def unexpected(cls, exc: BaseException | None = None) -> "ApiError":
        """Request could not be constructed or sent at all."""
        message = str(exc) if exc is not None and str(exc) else UNEXPECTED_ERROR_MESSAGE
        return cls(message, 0)

    @property
    def kind(self) -> ErrorKind:
        if self.status_code == 0:
            return ErrorKind.NETWORK if self._no_response else ErrorKind.UNEXPECTED
        if self.status_code == 401:
            return ErrorKind.AUTHENTICATION
        if self.validation or self.status_code == 422:
            return ErrorKind.VALIDATION
        if 400 <= self.status_code < 500:
            return ErrorKind.CLIENT
        if self.status_code >= 500:
            return ErrorKind.SERVER
        return ErrorKind.UNEXPECTED

    @property
    def is_transient(self) -> bool:
        """Network and server errors may succeed on retry."""
        return self.kind in (ErrorKind.NETWORK, ErrorKind.SERVER)

    def field_errors(self, field: str) -> list[str]:
        """Validation messages for one form field."""
        if not self.validation:
            return []
        return list(self.validation.get(field, []))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message, "statusCode": self.status_code}
        if self.error_code is not None:
            data["error"] = self.error_code
        if self.validation is not None:
            data["validation"] = self.validation
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class SessionExpiredError(ApiError):
    """Refreshing the access token failed; the session is over.

    The underlying failure is chained as `__cause__` and kept on `cause`.
    """

    def __init__(self, cause: BaseException | None = None) -> None:
        status_code = cause.status_code if isinstance(cause, ApiError) else 0
        super().__init__(SESSION_EXPIRED_MESSAGE, status_code)
        self.cause = cause

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.AUTHENTICATION


def _coerce_validation(raw: object) -> dict[str, list[str]] | None:
    if not isinstance(raw, dict):
        return None
    result: dict[str, list[str]] = {}
    for field, messages in raw.items():
        if isinstance(messages, list):
            result[str(field)] = [str(m) for m in messages]
        elif messages is not None:
            result[str(field)] = [str(messages)]
    return result or None
