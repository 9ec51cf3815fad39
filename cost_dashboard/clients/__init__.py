"""Storage clients for filter persistence."""

from .storage import InMemoryStore, JsonFileStore, KeyValueStore, RedisStore, StorageError

__all__ = ["InMemoryStore", "JsonFileStore", "KeyValueStore", "RedisStore", "StorageError"]
