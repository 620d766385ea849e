"""Option registry for the current wheel."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from uuid import uuid4

from tiny_decisions.domain.options import (
    DEFAULT_OPTION_TEXTS,
    MAX_OPTIONS,
    Option,
    color_for_position,
)


def new_short_id() -> str:
    """Return a short opaque identifier."""
    return uuid4().hex[:8]


@dataclass
class OptionRegistry:
    """Ordered, capacity-bound list of wheel options."""

    id_factory: Callable[[], str] = new_short_id
    capacity: int = MAX_OPTIONS
    _options: list[Option] = field(default_factory=list, init=False)

    @property
    def options(self) -> tuple[Option, ...]:
        """Return a snapshot of the current options."""
        return tuple(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def is_full(self) -> bool:
        """Return true when no more options can be added."""
        return len(self._options) >= self.capacity

    def add(self, text: str) -> Option | None:
        """Append an option; blank text or a full wheel is a no-op."""
        cleaned = text.strip()
        if not cleaned or self.is_full():
            return None
        option = self._create(cleaned, len(self._options))
        self._options.append(option)
        return option

    def remove(self, option_id: str) -> bool:
        """Remove an option by id, returning whether anything was removed."""
        remaining = [option for option in self._options if option.id != option_id]
        removed = len(remaining) != len(self._options)
        self._options = remaining
        return removed

    def replace_all(self, items: Iterable[Option | str]) -> None:
        """Replace every option, re-deriving colors by position."""
        texts = [
            (item.text if isinstance(item, Option) else item).strip() for item in items
        ]
        texts = [text for text in texts if text][: self.capacity]
        self._options = [
            self._create(text, index) for index, text in enumerate(texts)
        ]

    def reset(self) -> None:
        """Restore the default seed options."""
        self.replace_all(DEFAULT_OPTION_TEXTS)

    def clear(self) -> None:
        """Remove all options."""
        self._options = []

    def _create(self, text: str, index: int) -> Option:
        return Option(id=self.id_factory(), text=text, color=color_for_position(index))
