"""OpenAI Responses API client for text completion."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutriscan.services.assistant import CompletionClient


@dataclass
class OpenAICompletionClient(CompletionClient):
    """Completion client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, timeout_seconds: float = 30.0
    ) -> "OpenAICompletionClient":
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout_seconds))

    async def complete(
        self, *, model: str, reasoning_effort: str | None, store: bool, prompt: str
    ) -> str:
        """Send a single-turn prompt and return the output text."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        await self.client.close()
