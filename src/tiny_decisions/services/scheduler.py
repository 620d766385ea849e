"""Cancellable scheduled callbacks for the single-threaded engine."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

Callback = Callable[[], None]


def epoch_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(datetime.now(tz=UTC).timestamp() * 1000)


class ScheduledHandle(Protocol):
    """Handle for a scheduled callback."""

    def cancel(self) -> None:
        """Prevent any further invocation of the callback."""


class Scheduler(Protocol):
    """Interface for deferring callbacks without blocking."""

    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledHandle:
        """Invoke the callback once after the delay."""

    def call_every(self, interval_ms: int, callback: Callback) -> ScheduledHandle:
        """Invoke the callback repeatedly at the interval until cancelled."""


@dataclass
class _RepeatingHandle:
    loop: asyncio.AbstractEventLoop
    interval_ms: int
    callback: Callback
    _timer: asyncio.TimerHandle | None = field(default=None, init=False)
    _cancelled: bool = field(default=False, init=False)

    def start(self) -> "_RepeatingHandle":
        self._timer = self.loop.call_later(self.interval_ms / 1000, self._fire)
        return self

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._timer = self.loop.call_later(self.interval_ms / 1000, self._fire)
        self.callback()


@dataclass
class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    loop: asyncio.AbstractEventLoop | None = None

    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledHandle:
        """Schedule a one-shot callback on the event loop."""
        return self._loop().call_later(max(delay_ms, 0) / 1000, callback)

    def call_every(self, interval_ms: int, callback: Callback) -> ScheduledHandle:
        """Schedule a repeating callback on the event loop."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        return _RepeatingHandle(self._loop(), interval_ms, callback).start()

    def _loop(self) -> asyncio.AbstractEventLoop:
        return self.loop or asyncio.get_running_loop()
