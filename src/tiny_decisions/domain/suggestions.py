"""Models for suggestion provider results."""

from pydantic import BaseModel


class SuggestionList(BaseModel):
    """Structured output for option suggestions."""

    options: list[str]
