"""OpenAI Responses API client for structured plan generation."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from meal_coach.services.generation import StructuredGenerationClient

INCOMPLETE_STATUS = "incomplete"


@dataclass
class OpenAIGenerationClient(StructuredGenerationClient):
    """Sends one prompt and returns JSON text constrained by a strict schema."""

    client: AsyncOpenAI
    max_output_tokens: int | None = None

    @classmethod
    def create(
        cls, api_key: str, max_output_tokens: int | None = None
    ) -> "OpenAIGenerationClient":
        """Create a client with its own OpenAI session."""
        return cls(
            client=AsyncOpenAI(api_key=api_key), max_output_tokens=max_output_tokens
        )

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
    ) -> str:
        """Return the model's JSON reply for ``prompt``.

        Raises ``RuntimeError`` when the reply is empty or was cut short.
        """
        request_payload: dict[str, object] = {
            "model": model,
            "input": prompt,
            "text": {"format": _json_schema_format(schema_name, schema)},
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}
        if self.max_output_tokens:
            request_payload["max_output_tokens"] = self.max_output_tokens

        response = await self.client.responses.create(**request_payload)
        if getattr(response, "status", None) == INCOMPLETE_STATUS:
            details = getattr(response, "incomplete_details", None)
            reason = getattr(details, "reason", None) or "unknown"
            raise RuntimeError(f"OpenAI response incomplete: {reason}")
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def _json_schema_format(name: str, schema: dict[str, object]) -> dict[str, object]:
    return {"type": "json_schema", "name": name, "strict": True, "schema": schema}
