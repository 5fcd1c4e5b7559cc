"""Tests for OpenAI-backed adapters."""

import asyncio
import json

import httpx
import pytest

from meal_coach.adapters.openai_generation_client import OpenAIGenerationClient
from meal_coach.adapters.openai_image_client import OpenAIImageClient


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeImages:
    def __init__(self, items: list[object]) -> None:
        self.items = items
        self.last_payload: dict[str, object] | None = None

    async def generate(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("ImagesResp", (), {"data": self.items})()


class _FakeOpenAI:
    def __init__(self, output_text: str = "", images: list[object] | None = None):
        self.responses = _FakeResponses(output_text)
        self.images = _FakeImages(images or [])


def _image(b64_json: str | None = None, url: str | None = None) -> object:
    return type("Image", (), {"b64_json": b64_json, "url": url})()


def test_generation_client_sends_strict_schema() -> None:
    fake = _FakeOpenAI(output_text=json.dumps({"plan": []}))
    client = OpenAIGenerationClient(client=fake)

    result = asyncio.run(
        client.generate(
            model="gpt-5.2",
            reasoning_effort="medium",
            store=False,
            prompt="Plan my week",
            schema_name="weekly_plan",
            schema={"type": "object"},
        )
    )

    assert json.loads(result) == {"plan": []}
    payload = fake.responses.last_payload
    assert payload["text"]["format"]["name"] == "weekly_plan"
    assert payload["text"]["format"]["strict"] is True
    assert payload["reasoning"] == {"effort": "medium"}
    assert payload["input"] == "Plan my week"
    assert "max_output_tokens" not in payload


def test_generation_client_rejects_empty_output() -> None:
    client = OpenAIGenerationClient(client=_FakeOpenAI(output_text=""))

    with pytest.raises(RuntimeError):
        asyncio.run(
            client.generate(
                model="gpt-5.2",
                reasoning_effort=None,
                store=False,
                prompt="Plan my week",
                schema_name="weekly_plan",
                schema={"type": "object"},
            )
        )


def test_image_client_returns_inline_base64() -> None:
    fake = _FakeOpenAI(images=[_image(b64_json="aW1n")])
    client = OpenAIImageClient(
        client=fake, http_client=httpx.AsyncClient(), model="gpt-image-1"
    )

    image = asyncio.run(client.generate_image(prompt="A plate of soup"))

    assert image is not None
    assert image.to_data_url() == "data:image/png;base64,aW1n"
    assert fake.images.last_payload["model"] == "gpt-image-1"
    assert fake.images.last_payload["size"] == "1024x1024"


def test_image_client_downloads_url_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/img.jpg"
        return httpx.Response(
            200, content=b"jpeg-bytes", headers={"content-type": "image/jpeg"}
        )

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fake = _FakeOpenAI(images=[_image(url="https://cdn.test/img.jpg")])
    client = OpenAIImageClient(client=fake, http_client=async_client, model="m")

    image = asyncio.run(client.generate_image(prompt="A plate of soup"))

    assert image is not None
    assert image.mime_type == "image/jpeg"
    assert image.data_b64 == "anBlZy1ieXRlcw=="


def test_image_client_without_data_returns_none() -> None:
    client = OpenAIImageClient(
        client=_FakeOpenAI(), http_client=httpx.AsyncClient(), model="m"
    )

    assert asyncio.run(client.generate_image(prompt="A plate of soup")) is None


def test_generation_client_rejects_truncated_output() -> None:
    fake = _FakeOpenAI(output_text='{"plan": [')
    truncated = type(
        "Resp",
        (),
        {
            "output_text": '{"plan": [',
            "status": "incomplete",
            "incomplete_details": type("Details", (), {"reason": "max_output_tokens"}),
        },
    )()

    async def create(**kwargs):  # type: ignore[no-untyped-def]
        fake.responses.last_payload = kwargs
        return truncated

    fake.responses.create = create
    client = OpenAIGenerationClient(client=fake, max_output_tokens=2000)

    with pytest.raises(RuntimeError, match="max_output_tokens"):
        asyncio.run(
            client.generate(
                model="gpt-5.2",
                reasoning_effort=None,
                store=False,
                prompt="Plan my week",
                schema_name="weekly_plan",
                schema={"type": "object"},
            )
        )

    assert fake.responses.last_payload["max_output_tokens"] == 2000
