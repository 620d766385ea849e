"""Tests for the typed decision store."""

from tiny_decisions.domain.decisions import HistoryEntry, LockState, SavedWheel
from tiny_decisions.domain.options import Option
from tiny_decisions.services.storage import (
    HISTORY_KEY,
    LOCK_KEY,
    DecisionStore,
)
from tests.conftest import FailingKeyValueStore, InMemoryKeyValueStore

PIZZA = Option(id="o1", text="Pizza", color="#EF4444")
SUSHI = Option(id="o2", text="Sushi", color="#3B82F6")


def _entry(index: int) -> HistoryEntry:
    return HistoryEntry(id=f"h{index}", winner=PIZZA, timestamp_ms=index)


def test_lock_roundtrip_uses_plain_blob() -> None:
    kv_store = InMemoryKeyValueStore()
    store = DecisionStore(kv_store)
    lock = LockState(winner=SUSHI, unlock_at_ms=1_700_000_120_000)

    store.save_lock(lock)

    assert kv_store.values[LOCK_KEY] == {
        "winner": {"id": "o2", "text": "Sushi", "color": "#3B82F6"},
        "unlock_at_ms": 1_700_000_120_000,
    }
    assert store.get_lock() == lock
    store.clear_lock()
    assert store.get_lock() is None


def test_history_keeps_fifty_newest_entries() -> None:
    store = DecisionStore(InMemoryKeyValueStore())
    for index in range(50):
        store.add_history(_entry(index))

    updated = store.add_history(_entry(50))

    assert len(updated) == 50
    assert updated[0].id == "h50"
    assert "h0" not in {entry.id for entry in updated}
    assert store.get_history() == updated


def test_clear_history_removes_key() -> None:
    kv_store = InMemoryKeyValueStore()
    store = DecisionStore(kv_store)
    store.add_history(_entry(1))

    store.clear_history()

    assert HISTORY_KEY not in kv_store.values
    assert store.get_history() == []


def test_saved_wheels_prepend_and_delete() -> None:
    store = DecisionStore(InMemoryKeyValueStore())
    first = SavedWheel(id="w1", name="Lunch", options=(PIZZA,), created_at_ms=1)
    second = SavedWheel(id="w2", name="Dinner", options=(PIZZA, SUSHI), created_at_ms=2)

    store.save_wheel(first)
    wheels = store.save_wheel(second)

    assert [wheel.id for wheel in wheels] == ["w2", "w1"]
    assert store.get_saved_wheel("w2") == second
    assert [wheel.id for wheel in store.delete_saved_wheel("w2")] == ["w1"]
    assert store.get_saved_wheel("w2") is None


def test_malformed_records_are_treated_as_absent() -> None:
    kv_store = InMemoryKeyValueStore(
        values={
            LOCK_KEY: {"winner": {"id": "x"}},
            HISTORY_KEY: [{"id": "h1"}, "junk", _history_blob()],
        }
    )
    store = DecisionStore(kv_store)

    assert store.get_lock() is None
    assert [entry.id for entry in store.get_history()] == ["h2"]


def test_unavailable_store_falls_back_to_defaults() -> None:
    store = DecisionStore(FailingKeyValueStore())

    store.save_lock(LockState(winner=PIZZA, unlock_at_ms=5))
    store.add_history(_entry(1))

    assert store.get_lock() is None
    assert store.get_profile() is None
    assert store.get_history() == []
    assert store.get_saved_wheels() == []
    store.clear_history()


def _history_blob() -> dict[str, object]:
    return {
        "id": "h2",
        "winner": {"id": "o1", "text": "Pizza", "color": "#EF4444"},
        "timestamp_ms": 10,
    }
