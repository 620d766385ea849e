"""Shared test fixtures."""

import random
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from tiny_decisions.config import Settings
from tiny_decisions.containers import AppContainer
from tiny_decisions.domain.decisions import UserProfile
from tiny_decisions.errors import PersistenceUnavailableError, SuggestionProviderError
from tiny_decisions.services.lock_timer import LockTimer
from tiny_decisions.services.options import OptionRegistry
from tiny_decisions.services.scheduler import Scheduler
from tiny_decisions.services.session import DecisionSession
from tiny_decisions.services.signals import SignalSink
from tiny_decisions.services.spin import SpinEngine
from tiny_decisions.services.storage import DecisionStore, KeyValueStore
from tiny_decisions.services.suggestions import SuggestionClient, SuggestionService

START_MS = 1_700_000_000_000


@dataclass
class FakeClock:
    """Clock returning a controllable epoch millisecond value."""

    now_ms: int = START_MS

    def __call__(self) -> int:
        return self.now_ms


@dataclass
class ManualHandle:
    """Handle for a callback registered with the manual scheduler."""

    due_ms: int
    callback: Callable[[], None]
    interval_ms: int | None = None
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler(Scheduler):
    """Scheduler that only fires callbacks when time is advanced."""

    clock: FakeClock
    handles: list[ManualHandle] = field(default_factory=list)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.clock.now_ms + max(delay_ms, 0), callback)
        self.handles.append(handle)
        return handle

    def call_every(
        self, interval_ms: int, callback: Callable[[], None]
    ) -> ManualHandle:
        handle = ManualHandle(self.clock.now_ms + interval_ms, callback, interval_ms)
        self.handles.append(handle)
        return handle

    def pending(self) -> list[ManualHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due callbacks in order."""
        target = self.clock.now_ms + ms
        while True:
            due = [handle for handle in self.pending() if handle.due_ms <= target]
            if not due:
                break
            handle = min(due, key=lambda item: item.due_ms)
            self.clock.now_ms = handle.due_ms
            if handle.interval_ms is None:
                handle.cancelled = True
                self.handles.remove(handle)
            else:
                handle.due_ms += handle.interval_ms
            handle.callback()
        self.clock.now_ms = target


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests."""

    values: dict[str, object] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        return self.values.get(key)

    def set(self, key: str, value: object) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class FailingKeyValueStore(KeyValueStore):
    """Key-value store whose every operation fails."""

    def get(self, key: str) -> object | None:
        raise PersistenceUnavailableError("store offline")

    def set(self, key: str, value: object) -> None:
        raise PersistenceUnavailableError("store offline")

    def delete(self, key: str) -> None:
        raise PersistenceUnavailableError("store offline")


@dataclass
class RecordingSignalSink(SignalSink):
    """Signal sink that records emitted signals."""

    signals: list[str] = field(default_factory=list)

    def emit(self, signal: str, pattern: tuple[int, ...]) -> None:
        self.signals.append(signal)


class ExplodingSignalSink(SignalSink):
    """Signal sink that always fails."""

    def emit(self, signal: str, pattern: tuple[int, ...]) -> None:
        raise RuntimeError("vibration motor missing")


@dataclass
class FakeSuggestionClient(SuggestionClient):
    """Fake suggestion client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "options": ["Ramen", "Curry", "Dumplings", "Pho", "Bibimbap"]
        }
    )
    prompts: list[str] = field(default_factory=list)

    async def generate(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        self.prompts.append(prompt)
        return self.payload


class FailingSuggestionClient(SuggestionClient):
    """Suggestion client that always fails."""

    async def generate(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        raise SuggestionProviderError("network down")


class SequentialIds:
    """Deterministic id factory."""

    def __init__(self, prefix: str = "id") -> None:
        self.prefix = prefix
        self.counter = 0

    def __call__(self) -> str:
        self.counter += 1
        return f"{self.prefix}-{self.counter}"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        store_path=tmp_path / "store.json",
        supabase_url=None,
        supabase_service_key=None,
        openai_api_key=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def decision_store(kv_store: InMemoryKeyValueStore) -> DecisionStore:
    return DecisionStore(kv_store)


@pytest.fixture
def signal_sink() -> RecordingSignalSink:
    return RecordingSignalSink()


@pytest.fixture
def lock_timer(
    decision_store: DecisionStore, scheduler: ManualScheduler, clock: FakeClock
) -> LockTimer:
    return LockTimer(store=decision_store, scheduler=scheduler, clock=clock)


@pytest.fixture
def session(
    decision_store: DecisionStore,
    scheduler: ManualScheduler,
    clock: FakeClock,
    lock_timer: LockTimer,
    signal_sink: RecordingSignalSink,
) -> DecisionSession:
    return DecisionSession(
        registry=OptionRegistry(id_factory=SequentialIds("opt")),
        spin_engine=SpinEngine(rng=random.Random(1234)),
        lock_timer=lock_timer,
        decision_store=decision_store,
        scheduler=scheduler,
        signals=signal_sink,
        clock=clock,
        id_factory=SequentialIds("rec"),
    )


@pytest.fixture
def started_session(
    session: DecisionSession, decision_store: DecisionStore
) -> DecisionSession:
    decision_store.save_profile(UserProfile(name="Alex"))
    session.start()
    return session


@pytest.fixture
def suggestion_client() -> FakeSuggestionClient:
    return FakeSuggestionClient()


@pytest.fixture
def container(
    settings: Settings,
    decision_store: DecisionStore,
    session: DecisionSession,
    suggestion_client: FakeSuggestionClient,
) -> AppContainer:
    suggestion_service = SuggestionService(
        client=suggestion_client, model=settings.openai_model
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        decision_store=decision_store,
        suggestion_service=suggestion_service,
        session=session,
        close_resources=close_resources,
    )
