"""Domain models for decisions, locks and saved data."""

from dataclasses import dataclass
from enum import StrEnum

from tiny_decisions.domain.options import Option


class AppMode(StrEnum):
    """Modes of a decision session."""

    SOLO = "SOLO"
    DUO_SETUP = "DUO_SETUP"
    DUO_INPUT_A = "DUO_INPUT_A"
    DUO_INPUT_B = "DUO_INPUT_B"
    SPINNING = "SPINNING"
    LOCKED = "LOCKED"
    PROFILE = "PROFILE"


@dataclass(frozen=True)
class LockState:
    """A decided winner and the epoch millisecond it unlocks at."""

    winner: Option
    unlock_at_ms: int


@dataclass(frozen=True)
class HistoryEntry:
    """Represents one completed spin."""

    id: str
    winner: Option
    timestamp_ms: int


@dataclass(frozen=True)
class SavedWheel:
    """Represents a named snapshot of wheel options."""

    id: str
    name: str
    options: tuple[Option, ...]
    created_at_ms: int


@dataclass(frozen=True)
class UserProfile:
    """Represents the local user profile."""

    name: str
