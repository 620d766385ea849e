"""Supabase-backed key-value store."""

from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from tiny_decisions.errors import PersistenceUnavailableError
from tiny_decisions.services.storage import KeyValueStore


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Supabase implementation storing one JSON value per key."""

    client: Client
    table: str = "kv_store"

    def get(self, key: str) -> object | None:
        """Return the value for a key, if present."""
        try:
            response = (
                self.client.table(self.table)
                .select("key, value_json")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            raise PersistenceUnavailableError(f"Failed to read {key}") from exc
        if not response.data:
            return None
        return response.data[0].get("value_json")

    def set(self, key: str, value: object) -> None:
        """Upsert the value for a key."""
        try:
            self.client.table(self.table).upsert(
                {
                    "key": key,
                    "value_json": value,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise PersistenceUnavailableError(f"Failed to write {key}") from exc

    def delete(self, key: str) -> None:
        """Delete the row for a key."""
        try:
            self.client.table(self.table).delete().eq("key", key).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise PersistenceUnavailableError(f"Failed to delete {key}") from exc
