"""Fire-and-forget haptic and notification signals."""

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

SPIN_START = "spin_start"
LOCKED = "locked"

VIBRATION_PATTERNS: dict[str, tuple[int, ...]] = {
    SPIN_START: (200,),
    LOCKED: (100, 50, 100),
}


class SignalSink(Protocol):
    """Interface for haptic or notification side channels."""

    def emit(self, signal: str, pattern: tuple[int, ...]) -> None:
        """Deliver a signal with its vibration pattern in milliseconds."""


@dataclass
class LoggingSignalSink(SignalSink):
    """Signal sink that records signals in the application log."""

    level: int = logging.DEBUG

    def emit(self, signal: str, pattern: tuple[int, ...]) -> None:
        """Log the signal."""
        logger.log(self.level, "Signal %s pattern=%s", signal, pattern)


def fire_signal(sink: SignalSink | None, signal: str) -> None:
    """Emit a signal, ignoring any failure of the sink."""
    if sink is None:
        return
    try:
        sink.emit(signal, VIBRATION_PATTERNS.get(signal, ()))
    except Exception:
        logger.warning("Signal sink failed", extra={"signal": signal}, exc_info=True)
