"""OpenAI Responses API client for option suggestions."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from tiny_decisions.errors import SuggestionProviderError
from tiny_decisions.services.suggestions import SuggestionClient


@dataclass
class OpenAISuggestionClient(SuggestionClient):
    """Suggestion client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAISuggestionClient":
        """Create an OpenAI suggestion client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "wheel_options",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": False,
        }
        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise SuggestionProviderError("OpenAI request failed") from exc

        output_text = response.output_text
        if not output_text:
            raise SuggestionProviderError("OpenAI returned an empty response")
        try:
            parsed = json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise SuggestionProviderError("OpenAI returned invalid JSON") from exc
        if not isinstance(parsed, dict):
            raise SuggestionProviderError("OpenAI returned an unexpected payload")
        return parsed

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
