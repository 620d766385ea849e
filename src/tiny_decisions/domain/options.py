"""Domain models for wheel options."""

from dataclasses import dataclass

WHEEL_COLORS: tuple[str, ...] = (
    "#EF4444",  # red
    "#3B82F6",  # blue
    "#10B981",  # emerald
    "#F59E0B",  # amber
    "#8B5CF6",  # violet
    "#EC4899",  # pink
    "#06B6D4",  # cyan
    "#84CC16",  # lime
)

MAX_OPTIONS = 12
DEFAULT_OPTION_TEXTS: tuple[str, ...] = ("Pizza", "Sushi", "Tacos")


@dataclass(frozen=True)
class Option:
    """A single candidate on the wheel."""

    id: str
    text: str
    color: str


def color_for_position(index: int) -> str:
    """Return the palette color for a wheel position, wrapping around."""
    return WHEEL_COLORS[index % len(WHEEL_COLORS)]
