"""Credential store protocol and the key/value logic shared by its backends."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Protocol

from pydantic import ValidationError

from dashboard.app.models.auth import AuthTokens, SessionUser
from dashboard.app.models.common import Theme

logger = logging.getLogger(__name__)


class StorageKeys:
    """Well-known storage keys."""

    ACCESS_TOKEN = "auth_access_token"
    REFRESH_TOKEN = "auth_refresh_token"
    USER = "auth_user"
    THEME = "app_theme"


SESSION_KEYS = (StorageKeys.ACCESS_TOKEN, StorageKeys.REFRESH_TOKEN, StorageKeys.USER)


class CredentialStore(Protocol):
    """Durable storage of tokens, the cached user and the theme preference.

    All operations are synchronous, idempotent and do no network I/O.
    """

    def get_access_token(self) -> str | None: ...

    def get_refresh_token(self) -> str | None: ...

    def get_tokens(self) -> AuthTokens | None: ...

    def set_tokens(self, tokens: AuthTokens) -> None: ...

    def clear_tokens(self) -> None: ...

    def get_user(self) -> SessionUser | None: ...

    def set_user(self, user: SessionUser) -> None: ...

    def clear_user(self) -> None: ...

    def set_session(self, tokens: AuthTokens, user: SessionUser) -> None:
        """Persist tokens and user in a single write."""
        ...

    def clear(self) -> None:
        """Remove tokens and user; the theme preference is kept."""
        ...

    def is_authenticated(self) -> bool:
        """True iff both tokens are present (presence only, not validity)."""
        ...

    def get_theme(self) -> Theme | None: ...

    def set_theme(self, theme: Theme) -> None: ...


class KeyValueCredentialStore(ABC):
    """CredentialStore over a flat string key/value mapping.

    Backends implement `_load` and `_save`; every mutation is one
    load-modify-save cycle so multi-key updates land together.
    """

    @abstractmethod
    def _load(self) -> dict[str, str]:
        """Return the stored mapping, empty if nothing is stored."""

    @abstractmethod
    def _save(self, data: dict[str, str]) -> None:
        """Replace the stored mapping."""

    def _update(self, values: dict[str, str | None]) -> None:
        data = self._load()
        for key, value in values.items():
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
        self._save(data)

    # Tokens

    def get_access_token(self) -> str | None:
        return self._load().get(StorageKeys.ACCESS_TOKEN)

    def get_refresh_token(self) -> str | None:
        return self._load().get(StorageKeys.REFRESH_TOKEN)

    def get_tokens(self) -> AuthTokens | None:
        data = self._load()
        access = data.get(StorageKeys.ACCESS_TOKEN)
        refresh = data.get(StorageKeys.REFRESH_TOKEN)
        if not access or not refresh:
            return None
        return AuthTokens(access_token=access, refresh_token=refresh)

    def set_tokens(self, tokens: AuthTokens) -> None:
        self._update(
            {
                StorageKeys.ACCESS_TOKEN: tokens.access_token,
                StorageKeys.REFRESH_TOKEN: tokens.refresh_token,
            }
        )

    def clear_tokens(self) -> None:
        self._update({StorageKeys.ACCESS_TOKEN: None, StorageKeys.REFRESH_TOKEN: None})

    # Cached user

    def get_user(self) -> SessionUser | None:
        raw = self._load().get(StorageKeys.USER)
        if not raw:
            return None
        try:
            return SessionUser.model_validate_json(raw)
        except ValidationError:
            logger.warning("[credentials] Discarding unreadable cached user")
            return None

    def set_user(self, user: SessionUser) -> None:
        self._update({StorageKeys.USER: _dump_user(user)})

    def clear_user(self) -> None:
        self._update({StorageKeys.USER: None})

    # Whole session

    def set_session(self, tokens: AuthTokens, user: SessionUser) -> None:
        self._update(
            {
                StorageKeys.ACCESS_TOKEN: tokens.access_token,
                StorageKeys.REFRESH_TOKEN: tokens.refresh_token,
                StorageKeys.USER: _dump_user(user),
            }
        )

    def clear(self) -> None:
        self._update({key: None for key in SESSION_KEYS})

    def is_authenticated(self) -> bool:
        data = self._load()
        return bool(data.get(StorageKeys.ACCESS_TOKEN) and data.get(StorageKeys.REFRESH_TOKEN))

    # Preferences

    def get_theme(self) -> Theme | None:
        raw = self._load().get(StorageKeys.THEME)
        if raw is None:
            return None
        try:
            return Theme(raw)
        except ValueError:
            return None

    def set_theme(self, theme: Theme) -> None:
        self._update({StorageKeys.THEME: theme.value})


def _dump_user(user: SessionUser) -> str:
    return json.dumps(user.to_wire(), sort_keys=True)
