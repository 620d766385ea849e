"""Option suggestions generated by an LLM."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from tiny_decisions.domain.suggestions import SuggestionList
from tiny_decisions.errors import SuggestionProviderError

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 6
FALLBACK_SUGGESTIONS: tuple[str, ...] = ("Pizza", "Burgers", "Salad", "Sushi", "Tacos")

SUGGESTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "options": {
            "type": "array",
            "items": {"type": "string"},
        }
    },
    "required": ["options"],
    "additionalProperties": False,
}


class SuggestionClient(Protocol):
    """Interface for LLM option generation."""

    async def generate(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Return structured suggestion data."""


@dataclass
class SuggestionService:
    """Builds suggestion prompts and falls back to defaults on failure."""

    client: SuggestionClient | None
    model: str

    async def suggest(self, topic: str) -> list[str]:
        """Return up to six short option labels for a decision topic."""
        cleaned = topic.strip()
        if not cleaned:
            return []
        if self.client is None:
            return list(FALLBACK_SUGGESTIONS)

        prompt = (
            "Generate a list of 5 short, distinct options for the following "
            f'decision topic: "{cleaned}". Keep options under 4 words each.'
        )
        try:
            raw = await self.client.generate(
                model=self.model, prompt=prompt, schema=SUGGESTION_SCHEMA
            )
            result = SuggestionList.model_validate(raw)
        except (SuggestionProviderError, ValidationError):
            logger.exception("Suggestion generation failed", extra={"topic": cleaned})
            return list(FALLBACK_SUGGESTIONS)

        labels = [label.strip() for label in result.options if label.strip()]
        return labels[:MAX_SUGGESTIONS]
