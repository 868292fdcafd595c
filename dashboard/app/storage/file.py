"""JSON-file credential store that survives process restarts."""

import json
import logging
import os
import tempfile
from pathlib import Path

from dashboard.app.storage.base import KeyValueCredentialStore

logger = logging.getLogger(__name__)


class FileCredentialStore(KeyValueCredentialStore):
    """Credential store persisted as a single JSON object on disk.

    Writes go to a temporary file in the same directory which then replaces
    the target, so readers never observe a half-written session.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"[credentials] Ignoring corrupt store at {self._path}")
            return {}

        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, sort_keys=True)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
