"""Error types raised inside the decision engine and its adapters."""


class TinyDecisionsError(Exception):
    """Base class for application errors."""


class InsufficientOptionsError(TinyDecisionsError):
    """Raised when a spin or a duo phase lacks the minimum option count."""

    def __init__(self, user_message: str, *, required: int = 2, actual: int = 0):
        super().__init__(user_message)
        self.user_message = user_message
        self.required = required
        self.actual = actual


class PersistenceUnavailableError(TinyDecisionsError):
    """Raised by key-value store adapters when a read or write fails."""


class SuggestionProviderError(TinyDecisionsError):
    """Raised by suggestion clients on network or parse failures."""
