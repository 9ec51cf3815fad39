# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Durable key-value stores used for filter persistence.

Every store exposes the same three string-keyed operations. Values are
opaque strings; serialization is the caller's concern. I/O failures are
raised as StorageError so callers can decide how to degrade.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a key-value store operation fails."""

    pass


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal durable string store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


def _check_key(key: str) -> None:
    if not key:
        raise StorageError("key cannot be empty")


class InMemoryStore:
    """Process-local store, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        _check_key(key)
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        _check_key(key)
        self._data[key] = value

    def delete(self, key: str) -> None:
        _check_key(key)
        self._data.pop(key, None)


class JsonFileStore:
    """
    Store backed by a single JSON object on local disk.

    Writes go through a temporary file and an atomic rename so a crash never
    leaves a half-written document behind.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the file store.

        Args:
            path: Location of the JSON file (created on first write)
        """
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(f"Storage file {self.path} is corrupt: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        _check_key(key)
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        _check_key(key)
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        _check_key(key)
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class RedisStore:
    """Store backed by a Redis database."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0"):
        """
        Initialize Redis store client.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")

        Raises:
            StorageError: If Redis URL is empty or malformed
        """
        if not redis_url:
            raise StorageError("redis_url cannot be empty")

        self.redis_url = redis_url
        try:
            self._client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
                health_check_interval=30,
            )
        except (ValueError, RedisError) as e:
            raise StorageError(f"Invalid Redis URL {redis_url!r}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        _check_key(key)
        try:
            return self._client.get(key)
        except RedisError as e:
            raise StorageError(f"Redis get failed for {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        _check_key(key)
        try:
            self._client.set(key, value)
        except RedisError as e:
            raise StorageError(f"Redis set failed for {key}: {e}") from e

    def delete(self, key: str) -> None:
        _check_key(key)
        try:
            self._client.delete(key)
        except RedisError as e:
            raise StorageError(f"Redis delete failed for {key}: {e}") from e

    def close(self) -> None:
        """Close the Redis connection."""
        try:
            self._client.close()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.error(f"Error closing Redis connection: {str(e)}")
