"""Simple cache abstractions."""

import logging
from dataclasses import dataclass
from typing import Protocol

LEGACY_IMAGE_PREFIX = "nutrimind_image_cache_"
LEGACY_CLEANUP_SENTINEL = "nutrimind_cache_cleaned_v2"

_logger = logging.getLogger(__name__)


class Cache(Protocol):
    """Cache interface for simple string key-value data."""

    def get(self, key: str) -> str | None:
        """Return a cached value if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value."""

    def has(self, key: str) -> bool:
        """Return True when a value is stored for the key."""


class KeyValueStore(Cache, Protocol):
    """Cache that can also enumerate and drop entries."""

    def keys(self) -> list[str]:
        """Return all stored keys."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""

    def clear(self) -> None:
        """Remove every entry."""


@dataclass
class InMemoryCache(KeyValueStore):
    """Process-local cache, emptied on restart."""

    _entries: dict[str, str]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, key: str) -> str | None:
        """Return a cached value."""
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value."""
        self._entries[key] = value

    def has(self, key: str) -> bool:
        """Return True when the key is cached."""
        return key in self._entries

    def keys(self) -> list[str]:
        """Return cached keys."""
        return list(self._entries)

    def delete(self, key: str) -> None:
        """Drop a cached key."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every cached key."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def migrate_legacy_entries(store: KeyValueStore) -> int:
    """Purge obsolete image cache keys once per installation.

    Returns the number of removed keys; zero when the sentinel is already set.
    """
    if store.has(LEGACY_CLEANUP_SENTINEL):
        return 0
    stale = [key for key in store.keys() if key.startswith(LEGACY_IMAGE_PREFIX)]
    for key in stale:
        store.delete(key)
    store.set(LEGACY_CLEANUP_SENTINEL, "true")
    _logger.info("Cleaned %s legacy image cache entries", len(stale))
    return len(stale)
