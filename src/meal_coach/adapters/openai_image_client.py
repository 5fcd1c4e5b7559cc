"""OpenAI Images API client for meal illustrations."""

import base64
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from meal_coach.domain.images import GeneratedImage
from meal_coach.services.images import ImageGenerationClient


@dataclass
class OpenAIImageClient(ImageGenerationClient):
    """Image client backed by the OpenAI Images API."""

    client: AsyncOpenAI
    http_client: httpx.AsyncClient
    model: str
    size: str = "1024x1024"

    @classmethod
    def create(cls, api_key: str, model: str) -> "OpenAIImageClient":
        """Create an image client with a managed httpx session."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            http_client=httpx.AsyncClient(),
            model=model,
        )

    async def generate_image(self, *, prompt: str) -> GeneratedImage | None:
        """Generate one image and return it base64-encoded."""
        response = await self.client.images.generate(
            model=self.model, prompt=prompt, size=self.size, n=1
        )
        if not response.data:
            return None
        image = response.data[0]
        if image.b64_json:
            return GeneratedImage(mime_type="image/png", data_b64=image.b64_json)
        if image.url:
            download = await self.http_client.get(image.url, timeout=20)
            download.raise_for_status()
            mime_type = download.headers.get("content-type", "image/png")
            encoded = base64.b64encode(download.content).decode("utf-8")
            return GeneratedImage(mime_type=mime_type, data_b64=encoded)
        return None

    async def close(self) -> None:
        """Close the underlying HTTP sessions."""
        await self.http_client.aclose()
        await self.client.close()
