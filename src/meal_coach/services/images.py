"""Meal illustrations with a two-tier cache and a throttled request queue."""

import asyncio
import base64
import logging
import re
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from meal_coach.domain.images import GeneratedImage
from meal_coach.domain.locale import Locale
from meal_coach.services.cache import LEGACY_CLEANUP_SENTINEL, KeyValueStore

_FALLBACK_SVG = (
    '<svg width="400" height="300" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="400" height="300" fill="#f5f5f5"/>'
    '<text x="50%" y="50%" font-family="Arial" font-size="18" fill="#999" '
    'text-anchor="middle" dy=".3em">Meal</text></svg>'
)
FALLBACK_IMAGE = "data:image/svg+xml;base64," + base64.b64encode(
    _FALLBACK_SVG.encode("utf-8")
).decode("ascii")

_IMAGE_PROMPTS: dict[Locale, str] = {
    "en": (
        "Photorealistic image of a plate of {meal}, professional food "
        "photography, delicious looking"
    ),
    "fr": (
        "Image photoréaliste d'une assiette de {meal}, photographie culinaire "
        "professionnelle, aspect délicieux"
    ),
}

_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)


class ImageGenerationClient(Protocol):
    """Interface for text-to-image generation."""

    async def generate_image(self, *, prompt: str) -> GeneratedImage | None:
        """Return an image for the prompt, or None when nothing was produced."""


@dataclass(frozen=True)
class ImageCacheStats:
    """Counters for the image pipeline."""

    cached_images: int
    pending_requests: int
    queue_length: int


def normalize_meal_key(meal_name: str) -> str:
    """Return the stable cache key for a meal name."""
    return _WHITESPACE.sub("_", meal_name.strip().lower())


@dataclass
class MealImageService:
    """Returns meal images, generating each distinct one at most once.

    Lookups hit the in-memory tier, then the persistent tier, then join a
    request already in flight. Only on a full miss is a generation queued.
    A single worker drains the queue in FIFO order and waits
    ``request_delay_seconds`` after every call before starting the next.
    """

    client: ImageGenerationClient
    memory: KeyValueStore
    persistent: KeyValueStore
    request_delay_seconds: float = 1.5
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _pending: dict[str, asyncio.Future[str]] = field(
        default_factory=dict, init=False
    )
    _queue: deque[tuple[str, str, Locale]] = field(default_factory=deque, init=False)
    _worker: asyncio.Task[None] | None = field(default=None, init=False)

    async def get_image(self, meal_name: str, locale: Locale = "en") -> str:
        """Return a data URL for the meal image."""
        key = normalize_meal_key(meal_name)
        cached = self.memory.get(key)
        if cached is not None:
            return cached
        stored = self.persistent.get(key)
        if stored is not None:
            self.memory.set(key, stored)
            return stored

        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.get_running_loop().create_future()
            self._pending[key] = pending
            self._queue.append((key, meal_name, locale))
            self._ensure_worker()
        else:
            _logger.debug("Image request already pending: %s", key)
        # A caller that goes away must not cancel the shared request.
        return await asyncio.shield(pending)

    def stats(self) -> ImageCacheStats:
        """Return cache and queue counters."""
        return ImageCacheStats(
            cached_images=len(self.memory.keys()),
            pending_requests=len(self._pending),
            queue_length=len(self._queue),
        )

    def clear(self) -> None:
        """Empty both cache tiers, keeping the legacy cleanup marker."""
        self.memory.clear()
        for key in self.persistent.keys():
            if key != LEGACY_CLEANUP_SENTINEL:
                self.persistent.delete(key)
        _logger.info("Image cache cleared")

    async def wait_idle(self) -> None:
        """Wait until the queue worker has finished."""
        if self._worker is not None:
            await self._worker

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while self._queue:
                key, meal_name, locale = self._queue.popleft()
                image_url = await self._generate(meal_name, locale)
                self._resolve(key, image_url)
                self._store(key, image_url)
                await self.sleep(self.request_delay_seconds)
        except Exception:
            _logger.exception("Image queue worker stopped")
            raise
        finally:
            self._queue.clear()
            for key in list(self._pending):
                self._resolve(key, FALLBACK_IMAGE)

    def _resolve(self, key: str, image_url: str) -> None:
        future = self._pending.pop(key, None)
        if future is not None and not future.done():
            future.set_result(image_url)

    async def _generate(self, meal_name: str, locale: Locale) -> str:
        prompt = _IMAGE_PROMPTS[locale].format(meal=meal_name)
        try:
            image = await self.client.generate_image(prompt=prompt)
        except Exception as exc:
            _logger.warning(
                "Image generation failed for %r, using fallback: %s", meal_name, exc
            )
            return FALLBACK_IMAGE
        if image is None or not image.data_b64:
            _logger.warning("No image data for %r, using fallback", meal_name)
            return FALLBACK_IMAGE
        _logger.info("Generated image for %r", meal_name)
        return image.to_data_url()

    def _store(self, key: str, image_url: str) -> None:
        self.memory.set(key, image_url)
        try:
            self.persistent.set(key, image_url)
        except Exception:
            _logger.exception("Failed to persist image for %s", key)
