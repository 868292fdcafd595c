"""In-memory credential store (tests and throwaway sessions)."""

from dashboard.app.storage.base import KeyValueCredentialStore


class InMemoryCredentialStore(KeyValueCredentialStore):
    """In-memory implementation of CredentialStore."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def _load(self) -> dict[str, str]:
        return dict(self._data)

    def _save(self, data: dict[str, str]) -> None:
        self._data = dict(data)

    def snapshot(self) -> dict[str, str]:
        """Raw key/value view (useful for testing)."""
        return dict(self._data)
