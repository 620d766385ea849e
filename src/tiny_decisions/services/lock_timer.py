"""Cooldown lock that keeps a decided winner fixed until its deadline."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from tiny_decisions.domain.decisions import LockState
from tiny_decisions.domain.options import Option
from tiny_decisions.services.scheduler import (
    Callback,
    ScheduledHandle,
    Scheduler,
    epoch_ms,
)
from tiny_decisions.services.storage import DecisionStore

logger = logging.getLogger(__name__)

LOCK_DURATION_MS = 2 * 60 * 1000
COUNTDOWN_INTERVAL_MS = 1000


@dataclass
class LockTimer:
    """Owns the active lock, its persisted record and its callbacks.

    The unlock instant is driven by a one-shot callback at the deadline; the
    repeating tick only refreshes the countdown label. Whichever observes the
    deadline first releases the lock, and the release runs once.
    """

    store: DecisionStore
    scheduler: Scheduler
    clock: Callable[[], int] = epoch_ms
    duration_ms: int = LOCK_DURATION_MS
    tick_interval_ms: int = COUNTDOWN_INTERVAL_MS
    state: LockState | None = field(default=None, init=False)
    _label: str = field(default="", init=False)
    _on_expire: Callback | None = field(default=None, init=False)
    _deadline_handle: ScheduledHandle | None = field(default=None, init=False)
    _tick_handle: ScheduledHandle | None = field(default=None, init=False)

    @property
    def is_active(self) -> bool:
        """Return true while a lock is held."""
        return self.state is not None

    def engage(self, winner: Option, on_expire: Callback) -> LockState:
        """Lock a winner for the cooldown duration and persist it."""
        self._cancel_callbacks()
        lock = LockState(winner=winner, unlock_at_ms=self.clock() + self.duration_ms)
        self.store.save_lock(lock)
        self._arm(lock, on_expire)
        logger.info("Locked decision", extra={"unlock_at_ms": lock.unlock_at_ms})
        return lock

    def restore(self, on_expire: Callback) -> LockState | None:
        """Resume a persisted lock, discarding it if already expired."""
        lock = self.store.get_lock()
        if lock is None:
            return None
        if self.clock() >= lock.unlock_at_ms:
            self.store.clear_lock()
            logger.info("Discarded expired lock found at startup")
            return None
        self._cancel_callbacks()
        self._arm(lock, on_expire)
        logger.info("Resumed lock", extra={"unlock_at_ms": lock.unlock_at_ms})
        return lock

    def remaining_ms(self) -> int:
        """Return milliseconds until unlock, or zero when unlocked."""
        if self.state is None:
            return 0
        return max(self.state.unlock_at_ms - self.clock(), 0)

    def countdown_label(self) -> str:
        """Return the last refreshed countdown as ``m:ss``."""
        return self._label

    def cancel(self) -> None:
        """Stop the callbacks without releasing the persisted lock."""
        self._cancel_callbacks()

    def _arm(self, lock: LockState, on_expire: Callback) -> None:
        self.state = lock
        self._on_expire = on_expire
        self._refresh_label()
        self._deadline_handle = self.scheduler.call_later(
            self.remaining_ms(), self._expire
        )
        self._tick_handle = self.scheduler.call_every(
            self.tick_interval_ms, self._tick
        )

    def _tick(self) -> None:
        if self.state is None:
            return
        if self.clock() >= self.state.unlock_at_ms:
            self._expire()
            return
        self._refresh_label()

    def _expire(self) -> None:
        if self.state is None:
            return
        self._cancel_callbacks()
        self.state = None
        self._label = ""
        self.store.clear_lock()
        on_expire, self._on_expire = self._on_expire, None
        logger.info("Lock expired")
        if on_expire is not None:
            on_expire()

    def _refresh_label(self) -> None:
        self._label = format_countdown(self.remaining_ms())

    def _cancel_callbacks(self) -> None:
        for handle in (self._deadline_handle, self._tick_handle):
            if handle is not None:
                handle.cancel()
        self._deadline_handle = None
        self._tick_handle = None


def format_countdown(remaining_ms: int) -> str:
    """Format milliseconds as ``m:ss`` with floored seconds."""
    remaining_ms = max(remaining_ms, 0)
    minutes = remaining_ms // 60000
    seconds = (remaining_ms % 60000) // 1000
    return f"{minutes}:{seconds:02d}"
