"""Session state machine driving entry, spinning and the decision lock."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from tiny_decisions.domain.decisions import (
    AppMode,
    HistoryEntry,
    SavedWheel,
    UserProfile,
)
from tiny_decisions.domain.options import Option
from tiny_decisions.errors import InsufficientOptionsError
from tiny_decisions.services.lock_timer import LockTimer
from tiny_decisions.services.options import OptionRegistry, new_short_id
from tiny_decisions.services.scheduler import ScheduledHandle, Scheduler, epoch_ms
from tiny_decisions.services.signals import (
    LOCKED,
    SPIN_START,
    SignalSink,
    fire_signal,
)
from tiny_decisions.services.spin import SPIN_DURATION_MS, SpinEngine
from tiny_decisions.services.storage import DecisionStore

logger = logging.getLogger(__name__)

MERGE_DELAY_MS = 1500
DUO_MIN_OPTIONS = 2

_ENTRY_MODES = {AppMode.SOLO, AppMode.DUO_INPUT_A, AppMode.DUO_INPUT_B}


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a trigger, reported back to the caller."""

    accepted: bool
    mode: AppMode
    error: str | None = None
    message: str | None = None


@dataclass
class DecisionSession:
    """Owns the session mode and routes triggers to the engine components.

    Every trigger either transitions or leaves the state untouched; guard
    failures come back as a refused ``TransitionResult``.
    """

    registry: OptionRegistry
    spin_engine: SpinEngine
    lock_timer: LockTimer
    decision_store: DecisionStore
    scheduler: Scheduler
    signals: SignalSink | None = None
    clock: Callable[[], int] = epoch_ms
    spin_duration_ms: int = SPIN_DURATION_MS
    merge_delay_ms: int = MERGE_DELAY_MS
    id_factory: Callable[[], str] = new_short_id
    mode: AppMode = field(default=AppMode.SOLO, init=False)
    is_duo_session: bool = field(default=False, init=False)
    duo_split_index: int = field(default=0, init=False)
    is_syncing: bool = field(default=False, init=False)
    rotation: float = field(default=0.0, init=False)
    pairing_session_id: str | None = field(default=None, init=False)
    profile: UserProfile | None = field(default=None, init=False)
    pending_winner: Option | None = field(default=None, init=False)
    _spin_handle: ScheduledHandle | None = field(default=None, init=False)
    _merge_handle: ScheduledHandle | None = field(default=None, init=False)

    @property
    def options(self) -> tuple[Option, ...]:
        """Return the current wheel options."""
        return self.registry.options

    @property
    def winner(self) -> Option | None:
        """Return the locked winner, if any."""
        lock = self.lock_timer.state
        return lock.winner if lock else None

    def start(self) -> AppMode:
        """Derive the initial mode from persisted lock and profile state."""
        self.registry.reset()
        self.profile = self.decision_store.get_profile()
        if self.lock_timer.restore(self._on_lock_expired) is not None:
            self.mode = AppMode.LOCKED
        elif self.profile is None:
            self.mode = AppMode.PROFILE
        else:
            self.mode = AppMode.SOLO
        logger.info("Session started", extra={"mode": self.mode.value})
        return self.mode

    def teardown(self) -> None:
        """Cancel every pending callback so nothing fires against stale state."""
        for handle in (self._spin_handle, self._merge_handle):
            if handle is not None:
                handle.cancel()
        self._spin_handle = None
        self._merge_handle = None
        self.lock_timer.cancel()

    def add_option(self, text: str) -> Option | None:
        """Add an option while an entry mode is active."""
        if self.mode not in _ENTRY_MODES or self.is_syncing:
            return None
        return self.registry.add(text)

    def remove_option(self, option_id: str) -> bool:
        """Remove an option while an entry mode is active."""
        if self.mode not in _ENTRY_MODES or self.is_syncing:
            return False
        return self.registry.remove(option_id)

    def apply_suggestions(self, labels: list[str]) -> TransitionResult:
        """Replace the options with accepted suggestions."""
        if self.mode is not AppMode.SOLO or self.is_duo_session or not labels:
            return self._ignored()
        self.registry.replace_all(labels)
        return self._accepted()

    def start_spin(self, forced_index: int | None = None) -> TransitionResult:
        """Spin the wheel and schedule the completion callback."""
        if self.mode is not AppMode.SOLO or self.is_syncing:
            return self._ignored()
        try:
            result = self.spin_engine.spin(
                self.registry.options, self.rotation, forced_index=forced_index
            )
        except InsufficientOptionsError as exc:
            return self._refused(exc)

        self.pending_winner = self.registry.options[result.winner_index]
        self.rotation = result.target_rotation
        self.mode = AppMode.SPINNING
        fire_signal(self.signals, SPIN_START)
        self._spin_handle = self.scheduler.call_later(
            self.spin_duration_ms, self._complete_spin
        )
        logger.info(
            "Spin started",
            extra={
                "winner_index": result.winner_index,
                "target_rotation": result.target_rotation,
            },
        )
        return self._accepted()

    def start_duo(self) -> TransitionResult:
        """Begin pairing for a duo session."""
        if self.mode is not AppMode.SOLO:
            return self._ignored()
        self.pairing_session_id = self.id_factory()
        self.mode = AppMode.DUO_SETUP
        return self._accepted()

    def cancel_duo(self) -> TransitionResult:
        """Abandon pairing and return to solo entry."""
        if self.mode is not AppMode.DUO_SETUP:
            return self._ignored()
        self.pairing_session_id = None
        self.mode = AppMode.SOLO
        return self._accepted()

    def pairing_url(self, base_url: str) -> str | None:
        """Return the link a second participant would open to pair."""
        if self.mode is not AppMode.DUO_SETUP or self.pairing_session_id is None:
            return None
        return f"{base_url}?session={self.pairing_session_id}"

    def complete_pairing(self) -> TransitionResult:
        """Start duo entry for the first participant."""
        if self.mode is not AppMode.DUO_SETUP:
            return self._ignored()
        self.registry.clear()
        self.duo_split_index = 0
        self.is_duo_session = True
        self.mode = AppMode.DUO_INPUT_A
        return self._accepted()

    def finish_input(self) -> TransitionResult:
        """Hand over to the second participant, or merge both entries."""
        if self.mode is AppMode.DUO_INPUT_A:
            count = len(self.registry)
            if count < DUO_MIN_OPTIONS:
                return self._refused(
                    InsufficientOptionsError(
                        "User A must add at least 2 options",
                        required=DUO_MIN_OPTIONS,
                        actual=count,
                    )
                )
            self.duo_split_index = count
            self.mode = AppMode.DUO_INPUT_B
            return self._accepted()

        if self.mode is AppMode.DUO_INPUT_B and not self.is_syncing:
            count = len(self.registry) - self.duo_split_index
            if count < DUO_MIN_OPTIONS:
                return self._refused(
                    InsufficientOptionsError(
                        "User B must add at least 2 options!",
                        required=DUO_MIN_OPTIONS,
                        actual=count,
                    )
                )
            self._begin_merge()
            return self._accepted()

        return self._ignored()

    def exit_duo(self) -> TransitionResult:
        """Leave the duo flow and restore the default options.

        The session settles on LOCKED rather than SOLO while a lock is active,
        so leaving a duo session never allows a spin during the cooldown.
        """
        in_duo = self.is_duo_session or self.mode is AppMode.DUO_SETUP
        if self.mode is AppMode.SPINNING or not in_duo:
            return self._ignored()
        if self._merge_handle is not None:
            self._merge_handle.cancel()
            self._merge_handle = None
        self.is_syncing = False
        self.is_duo_session = False
        self.duo_split_index = 0
        self.pairing_session_id = None
        self.registry.reset()
        self.mode = self._resting_mode()
        return self._accepted()

    def open_profile(self) -> TransitionResult:
        """Show the profile screen."""
        if self.mode not in {AppMode.SOLO, AppMode.LOCKED} or self.is_syncing:
            return self._ignored()
        self.mode = AppMode.PROFILE
        return self._accepted()

    def close_profile(self) -> TransitionResult:
        """Return from the profile screen."""
        if self.mode is not AppMode.PROFILE:
            return self._ignored()
        self.mode = self._resting_mode()
        return self._accepted()

    def update_profile(self, name: str) -> UserProfile | None:
        """Store the profile name; blank names are ignored."""
        cleaned = name.strip()
        if not cleaned:
            return None
        self.profile = UserProfile(name=cleaned)
        self.decision_store.save_profile(self.profile)
        return self.profile

    def save_wheel(self, name: str) -> SavedWheel | None:
        """Save the current options under a name."""
        cleaned = name.strip()
        if (
            not cleaned
            or len(self.registry) == 0
            or self.mode is not AppMode.SOLO
            or self.is_duo_session
        ):
            return None
        wheel = SavedWheel(
            id=self.id_factory(),
            name=cleaned,
            options=self.registry.options,
            created_at_ms=self.clock(),
        )
        self.decision_store.save_wheel(wheel)
        return wheel

    def load_wheel(self, wheel_id: str) -> TransitionResult:
        """Replace the options with a saved wheel and leave any duo session."""
        if self.mode not in {AppMode.SOLO, AppMode.PROFILE}:
            return self._ignored()
        wheel = self.decision_store.get_saved_wheel(wheel_id)
        if wheel is None:
            return TransitionResult(
                accepted=False,
                mode=self.mode,
                error="not_found",
                message="Saved wheel not found",
            )
        self.registry.replace_all(wheel.options)
        self.is_duo_session = False
        self.duo_split_index = 0
        self.mode = self._resting_mode()
        return self._accepted()

    def delete_wheel(self, wheel_id: str) -> list[SavedWheel]:
        """Delete a saved wheel."""
        return self.decision_store.delete_saved_wheel(wheel_id)

    def saved_wheels(self) -> list[SavedWheel]:
        """Return saved wheels, newest first."""
        return self.decision_store.get_saved_wheels()

    def history(self) -> list[HistoryEntry]:
        """Return decision history, newest first."""
        return self.decision_store.get_history()

    def clear_history(self) -> None:
        """Remove all history entries."""
        self.decision_store.clear_history()

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-ready view of the session."""
        winner = self.winner
        return {
            "mode": self.mode.value,
            "options": [_option_payload(option) for option in self.registry.options],
            "is_duo_session": self.is_duo_session,
            "duo_split_index": self.duo_split_index,
            "is_syncing": self.is_syncing,
            "rotation": self.rotation,
            "pairing_session_id": self.pairing_session_id,
            "profile": {"name": self.profile.name} if self.profile else None,
            "winner": _option_payload(winner) if winner else None,
            "unlock_at_ms": (
                self.lock_timer.state.unlock_at_ms if self.lock_timer.state else None
            ),
            "remaining_ms": self.lock_timer.remaining_ms(),
            "countdown": self.lock_timer.countdown_label(),
        }

    def _complete_spin(self) -> None:
        self._spin_handle = None
        winner = self.pending_winner
        if self.mode is not AppMode.SPINNING or winner is None:
            return
        self.pending_winner = None
        fire_signal(self.signals, LOCKED)
        self.lock_timer.engage(winner, self._on_lock_expired)
        self.decision_store.add_history(
            HistoryEntry(id=self.id_factory(), winner=winner, timestamp_ms=self.clock())
        )
        self.mode = AppMode.LOCKED
        logger.info("Spin completed", extra={"winner": winner.text})

    def _on_lock_expired(self) -> None:
        if self.mode is AppMode.LOCKED:
            self.mode = AppMode.SOLO
        logger.info("Decision unlocked", extra={"mode": self.mode.value})

    def _begin_merge(self) -> None:
        if self.merge_delay_ms <= 0:
            self._finish_merge()
            return
        self.is_syncing = True
        self._merge_handle = self.scheduler.call_later(
            self.merge_delay_ms, self._finish_merge
        )

    def _finish_merge(self) -> None:
        self._merge_handle = None
        self.is_syncing = False
        if self.mode is AppMode.DUO_INPUT_B:
            self.mode = AppMode.SOLO
            logger.info("Duo options merged", extra={"count": len(self.registry)})

    def _resting_mode(self) -> AppMode:
        return AppMode.LOCKED if self.lock_timer.is_active else AppMode.SOLO

    def _accepted(self) -> TransitionResult:
        return TransitionResult(accepted=True, mode=self.mode)

    def _ignored(self) -> TransitionResult:
        return TransitionResult(accepted=False, mode=self.mode)

    def _refused(self, exc: InsufficientOptionsError) -> TransitionResult:
        logger.warning(
            "Transition refused",
            extra={"mode": self.mode.value, "required": exc.required},
        )
        return TransitionResult(
            accepted=False,
            mode=self.mode,
            error="insufficient_options",
            message=exc.user_message,
        )


def _option_payload(option: Option) -> dict[str, str]:
    return {"id": option.id, "text": option.text, "color": option.color}
