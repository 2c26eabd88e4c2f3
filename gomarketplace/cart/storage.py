"""Key-value storage backends for the cart."""
import asyncio
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from gomarketplace import config
from gomarketplace.db import get_redis
from gomarketplace.errors import ERROR_STORAGE_UNAVAILABLE, StorageError
from gomarketplace.logging import get_logger, sanitize_key_for_logging

logger = get_logger(__name__)


@runtime_checkable
class KeyValueStorage(Protocol):
    """Async text storage addressed by key."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage. Contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class FileStorage:
    """
    Device-local storage: one file per key under `directory`.

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-write never leaves a truncated cart behind.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, self.path_for(key))
        except OSError as e:
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, self.path_for(key), value)
        except OSError as e:
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    @staticmethod
    def _read(path: Path) -> Optional[str]:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class RedisStorage:
    """
    Upstash Redis storage.

    Writes are retried with exponential backoff on transport errors
    (timeouts, dropped connections); other errors fail immediately.
    """

    def __init__(
        self,
        client=None,
        ttl: int = 0,
        attempts: int = 3,
        backoff: float = 0.5,
    ):
        self._client = client
        self.ttl = ttl
        self.attempts = max(1, attempts)
        self.backoff = backoff

    @property
    def client(self):
        """Get Redis client (lazy initialization)."""
        if self._client is None:
            try:
                self._client = get_redis()
            except ValueError as e:
                raise StorageError(f"Redis not available: {e}") from e
        return self._client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(key)
        except StorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to read {sanitize_key_for_logging(key)} from Redis: {e}")
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.attempts),
                wait=wait_exponential(multiplier=self.backoff, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    if self.ttl > 0:
                        await self.client.set(key, value, ex=self.ttl)
                    else:
                        await self.client.set(key, value)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e


def create_storage(backend: Optional[str] = None) -> KeyValueStorage:
    """
    Build the storage backend selected by CART_STORAGE_BACKEND.

    Raises:
        ValueError: for an unknown backend name
    """
    backend = (backend or config.CART_STORAGE_BACKEND).lower()

    if backend == "file":
        return FileStorage(config.CART_STORAGE_DIR)
    if backend == "memory":
        return MemoryStorage()
    if backend == "redis":
        return RedisStorage(
            ttl=config.CART_REDIS_TTL,
            attempts=config.STORAGE_WRITE_ATTEMPTS,
        )

    raise ValueError(
        f"Unknown cart storage backend {backend!r}; expected one of {', '.join(config.SUPPORTED_BACKENDS)}"
    )
