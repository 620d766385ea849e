"""Tests for the cooldown lock timer."""

from tiny_decisions.domain.decisions import LockState
from tiny_decisions.domain.options import Option
from tiny_decisions.services.lock_timer import LockTimer, format_countdown
from tiny_decisions.services.storage import DecisionStore
from tests.conftest import FakeClock, ManualScheduler

WINNER = Option(id="w1", text="Sushi", color="#3B82F6")


class ExpiryCounter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def test_engage_persists_deadline(
    lock_timer: LockTimer, decision_store: DecisionStore, clock: FakeClock
) -> None:
    lock = lock_timer.engage(WINNER, ExpiryCounter())

    assert lock.unlock_at_ms == clock.now_ms + 120_000
    assert decision_store.get_lock() == lock
    assert lock_timer.countdown_label() == "2:00"


def test_countdown_refreshes_each_tick(
    lock_timer: LockTimer, scheduler: ManualScheduler
) -> None:
    lock_timer.engage(WINNER, ExpiryCounter())

    scheduler.advance(1_000)
    assert lock_timer.countdown_label() == "1:59"

    scheduler.advance(59_500)
    assert lock_timer.countdown_label() == "1:00"
    assert lock_timer.remaining_ms() == 59_500


def test_expiry_fires_once_and_clears_store(
    lock_timer: LockTimer,
    scheduler: ManualScheduler,
    decision_store: DecisionStore,
) -> None:
    on_expire = ExpiryCounter()
    lock_timer.engage(WINNER, on_expire)

    scheduler.advance(120_000)
    scheduler.advance(10_000)

    assert on_expire.calls == 1
    assert lock_timer.state is None
    assert decision_store.get_lock() is None
    assert scheduler.pending() == []


def test_expiry_when_deadline_and_tick_coincide(
    decision_store: DecisionStore, scheduler: ManualScheduler, clock: FakeClock
) -> None:
    timer = LockTimer(
        store=decision_store,
        scheduler=scheduler,
        clock=clock,
        duration_ms=3_000,
        tick_interval_ms=1_000,
    )
    on_expire = ExpiryCounter()
    timer.engage(WINNER, on_expire)

    scheduler.advance(3_000)

    assert on_expire.calls == 1
    assert scheduler.pending() == []


def test_tick_releases_lock_when_deadline_passed(
    decision_store: DecisionStore, clock: FakeClock
) -> None:
    class NoDeadlineScheduler(ManualScheduler):
        def call_later(self, delay_ms, callback):  # type: ignore[no-untyped-def]
            return super().call_later(10**9, callback)

    scheduler = NoDeadlineScheduler(clock)
    timer = LockTimer(store=decision_store, scheduler=scheduler, clock=clock)
    on_expire = ExpiryCounter()
    timer.engage(WINNER, on_expire)

    scheduler.advance(121_000)

    assert on_expire.calls == 1
    assert decision_store.get_lock() is None


def test_restore_resumes_future_lock_with_original_deadline(
    lock_timer: LockTimer, decision_store: DecisionStore, clock: FakeClock
) -> None:
    persisted = LockState(winner=WINNER, unlock_at_ms=clock.now_ms + 60_000)
    decision_store.save_lock(persisted)

    restored = lock_timer.restore(ExpiryCounter())

    assert restored == persisted
    assert lock_timer.remaining_ms() == 60_000
    assert lock_timer.countdown_label() == "1:00"


def test_restore_discards_expired_lock(
    lock_timer: LockTimer,
    decision_store: DecisionStore,
    scheduler: ManualScheduler,
    clock: FakeClock,
) -> None:
    decision_store.save_lock(LockState(winner=WINNER, unlock_at_ms=clock.now_ms - 1))

    assert lock_timer.restore(ExpiryCounter()) is None
    assert decision_store.get_lock() is None
    assert scheduler.pending() == []


def test_cancel_keeps_persisted_lock(
    lock_timer: LockTimer,
    decision_store: DecisionStore,
    scheduler: ManualScheduler,
) -> None:
    on_expire = ExpiryCounter()
    lock_timer.engage(WINNER, on_expire)

    lock_timer.cancel()
    scheduler.advance(200_000)

    assert on_expire.calls == 0
    assert decision_store.get_lock() is not None


def test_format_countdown() -> None:
    assert format_countdown(120_000) == "2:00"
    assert format_countdown(61_999) == "1:01"
    assert format_countdown(9_000) == "0:09"
    assert format_countdown(-5) == "0:00"
