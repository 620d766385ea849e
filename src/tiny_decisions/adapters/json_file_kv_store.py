"""Local JSON-file key-value store."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from tiny_decisions.errors import PersistenceUnavailableError
from tiny_decisions.services.storage import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class JsonFileKeyValueStore(KeyValueStore):
    """Stores every key in a single JSON document on disk.

    Reads of an unreadable document raise. Writes replace it with a fresh
    document so a corrupt file never blocks later saves.
    """

    path: Path

    def get(self, key: str) -> object | None:
        """Return the value for a key, if present."""
        return self._load().get(key)

    def set(self, key: str, value: object) -> None:
        """Store the value for a key."""
        data = self._load_for_write()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        data = self._load_for_write()
        if data.pop(key, None) is not None:
            self._dump(data)

    def _load(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceUnavailableError(f"Cannot read {self.path}") from exc
        if not isinstance(data, dict):
            raise PersistenceUnavailableError(f"Unexpected content in {self.path}")
        return data

    def _load_for_write(self) -> dict[str, object]:
        try:
            return self._load()
        except PersistenceUnavailableError:
            logger.warning("Replacing unreadable store", extra={"path": str(self.path)})
            return {}

    def _dump(self, data: dict[str, object]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise PersistenceUnavailableError(f"Cannot write {self.path}") from exc
