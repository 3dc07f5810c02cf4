"""Async key-value backends that hold the serialized note collection.

A backend only stores opaque text under a key. Every backend exception is
left to propagate; :class:`~note_store.store.NoteStore` wraps them into
storage errors.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

import anyio
import redis.asyncio as aioredis

from note_store.config import Settings

logger = logging.getLogger(__name__)


class KeyValueBackend(Protocol):
    """Minimal async key-value interface used by the note store."""

    async def get_item(self, key: str) -> Optional[str]: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def close(self) -> None: ...


class MemoryBackend:
    """Process-local backend, mostly useful for tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def close(self) -> None:
        return None


class FileBackend:
    """Stores each key as ``<key>.json`` inside a directory.

    Writes go to a temporary sibling first and are moved into place, so a
    crash mid-write leaves the previous value intact.
    """

    def __init__(self, directory: Path) -> None:
        self._dir = anyio.Path(directory)

    def _path(self, key: str) -> anyio.Path:
        return self._dir / f"{key}.json"

    async def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not await path.exists():
            return None
        return await path.read_text(encoding="utf-8")

    async def set_item(self, key: str, value: str) -> None:
        await self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = self._dir / f"{key}.json.tmp"
        await tmp.write_text(value, encoding="utf-8")
        await tmp.replace(path)

    async def close(self) -> None:
        return None


class RedisBackend:
    """Backend storing values as plain Redis strings."""

    def __init__(self, redis_url: str) -> None:
        self._redis_url = redis_url
        self._client: Optional[aioredis.Redis] = None

    def _connection(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(self._redis_url, decode_responses=True)
            logger.info("Redis backend connected: %s", self._redis_url)
        return self._client

    async def get_item(self, key: str) -> Optional[str]:
        return await self._connection().get(key)

    async def set_item(self, key: str, value: str) -> None:
        await self._connection().set(key, value)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


def create_backend(settings: Settings) -> KeyValueBackend:
    """Build the backend selected by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return MemoryBackend()
    if settings.storage_backend == "redis":
        return RedisBackend(settings.redis_url)
    return FileBackend(settings.data_dir)
