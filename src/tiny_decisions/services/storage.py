"""Typed persistence of locks, profiles, saved wheels and history."""

import logging
from dataclasses import dataclass
from typing import Protocol

from tiny_decisions.domain.decisions import (
    HistoryEntry,
    LockState,
    SavedWheel,
    UserProfile,
)
from tiny_decisions.domain.options import Option
from tiny_decisions.errors import PersistenceUnavailableError

logger = logging.getLogger(__name__)

LOCK_KEY = "tiny_decisions_lock_state"
PROFILE_KEY = "tiny_decisions_profile"
SAVED_WHEELS_KEY = "tiny_decisions_saved_wheels"
HISTORY_KEY = "tiny_decisions_history"

HISTORY_LIMIT = 50


class KeyValueStore(Protocol):
    """Persistence interface for JSON-compatible blobs."""

    def get(self, key: str) -> object | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: object) -> None:
        """Store a value, replacing any previous one."""

    def delete(self, key: str) -> None:
        """Remove a value if present."""


@dataclass
class DecisionStore:
    """Reads and writes decision records over a key-value store.

    Store failures never propagate: reads fall back to absence and writes are
    logged and skipped.
    """

    store: KeyValueStore

    def get_lock(self) -> LockState | None:
        """Return the persisted lock, if any."""
        raw = self._read(LOCK_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return LockState(
                winner=_option_from_dict(raw["winner"]),
                unlock_at_ms=int(raw["unlock_at_ms"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed lock record")
            return None

    def save_lock(self, lock: LockState) -> None:
        """Persist the lock, overwriting any previous one."""
        self._write(
            LOCK_KEY,
            {
                "winner": _option_to_dict(lock.winner),
                "unlock_at_ms": lock.unlock_at_ms,
            },
        )

    def clear_lock(self) -> None:
        """Remove the persisted lock."""
        self._delete(LOCK_KEY)

    def get_profile(self) -> UserProfile | None:
        """Return the stored profile, if any."""
        raw = self._read(PROFILE_KEY)
        if isinstance(raw, dict) and isinstance(raw.get("name"), str):
            return UserProfile(name=raw["name"])
        return None

    def save_profile(self, profile: UserProfile) -> None:
        """Persist the user profile."""
        self._write(PROFILE_KEY, {"name": profile.name})

    def get_saved_wheels(self) -> list[SavedWheel]:
        """Return saved wheels, newest first."""
        wheels: list[SavedWheel] = []
        for raw in self._read_list(SAVED_WHEELS_KEY):
            try:
                wheels.append(
                    SavedWheel(
                        id=str(raw["id"]),
                        name=str(raw["name"]),
                        options=tuple(
                            _option_from_dict(item) for item in raw["options"]
                        ),
                        created_at_ms=int(raw["created_at_ms"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed saved wheel record")
        return wheels

    def get_saved_wheel(self, wheel_id: str) -> SavedWheel | None:
        """Return a saved wheel by id, if present."""
        for wheel in self.get_saved_wheels():
            if wheel.id == wheel_id:
                return wheel
        return None

    def save_wheel(self, wheel: SavedWheel) -> list[SavedWheel]:
        """Prepend a saved wheel and return the updated list."""
        updated = [wheel, *self.get_saved_wheels()]
        self._write(SAVED_WHEELS_KEY, [_wheel_to_dict(item) for item in updated])
        return updated

    def delete_saved_wheel(self, wheel_id: str) -> list[SavedWheel]:
        """Delete a saved wheel and return the remaining list."""
        remaining = [wheel for wheel in self.get_saved_wheels() if wheel.id != wheel_id]
        self._write(SAVED_WHEELS_KEY, [_wheel_to_dict(item) for item in remaining])
        return remaining

    def get_history(self) -> list[HistoryEntry]:
        """Return history entries, newest first."""
        entries: list[HistoryEntry] = []
        for raw in self._read_list(HISTORY_KEY):
            try:
                entries.append(
                    HistoryEntry(
                        id=str(raw["id"]),
                        winner=_option_from_dict(raw["winner"]),
                        timestamp_ms=int(raw["timestamp_ms"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed history record")
        return entries

    def add_history(self, entry: HistoryEntry) -> list[HistoryEntry]:
        """Prepend a history entry, keeping the most recent entries only."""
        updated = [entry, *self.get_history()][:HISTORY_LIMIT]
        self._write(HISTORY_KEY, [_history_to_dict(item) for item in updated])
        return updated

    def clear_history(self) -> None:
        """Remove every history entry."""
        self._delete(HISTORY_KEY)

    def _read(self, key: str) -> object | None:
        try:
            return self.store.get(key)
        except PersistenceUnavailableError:
            logger.warning("Store read failed, treating as empty", extra={"key": key})
            return None

    def _read_list(self, key: str) -> list[dict]:
        raw = self._read(key)
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]

    def _write(self, key: str, value: object) -> None:
        try:
            self.store.set(key, value)
        except PersistenceUnavailableError:
            logger.warning("Store write failed", extra={"key": key})

    def _delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except PersistenceUnavailableError:
            logger.warning("Store delete failed", extra={"key": key})


def _option_to_dict(option: Option) -> dict[str, str]:
    return {"id": option.id, "text": option.text, "color": option.color}


def _option_from_dict(raw: dict) -> Option:
    return Option(id=str(raw["id"]), text=str(raw["text"]), color=str(raw["color"]))


def _wheel_to_dict(wheel: SavedWheel) -> dict[str, object]:
    return {
        "id": wheel.id,
        "name": wheel.name,
        "options": [_option_to_dict(option) for option in wheel.options],
        "created_at_ms": wheel.created_at_ms,
    }


def _history_to_dict(entry: HistoryEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "winner": _option_to_dict(entry.winner),
        "timestamp_ms": entry.timestamp_ms,
    }
