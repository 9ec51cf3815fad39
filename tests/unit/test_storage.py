"""Unit tests for the key-value stores."""

import json
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cost_dashboard.clients.storage import (
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    RedisStore,
    StorageError,
)


class TestInMemoryStore:
    """Test the process-local store."""

    def test_get_missing_key(self):
        assert InMemoryStore().get("filters") is None

    def test_set_then_get(self):
        store = InMemoryStore()
        store.set("filters", "{}")
        assert store.get("filters") == "{}"

    def test_delete(self):
        store = InMemoryStore({"filters": "{}"})
        store.delete("filters")
        store.delete("filters")
        assert store.get("filters") is None

    def test_initial_data_is_copied(self):
        initial = {"filters": "{}"}
        store = InMemoryStore(initial)
        store.set("filters", "[]")
        assert initial["filters"] == "{}"

    def test_empty_key_rejected(self):
        with pytest.raises(StorageError, match="key cannot be empty"):
            InMemoryStore().set("", "{}")

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryStore(), KeyValueStore)


class TestJsonFileStore:
    """Test the JSON file store."""

    def test_missing_file_reads_as_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "filters.json")
        assert store.get("filters") is None

    def test_set_creates_file_and_parents(self, tmp_path):
        path = tmp_path / "state" / "filters.json"
        store = JsonFileStore(path)

        store.set("filters", '{"version": "1.0"}')

        assert json.loads(path.read_text()) == {"filters": '{"version": "1.0"}'}
        assert store.get("filters") == '{"version": "1.0"}'

    def test_keys_are_independent(self, tmp_path):
        store = JsonFileStore(tmp_path / "filters.json")
        store.set("a", "1")
        store.set("b", "2")
        store.delete("a")

        assert store.get("a") is None
        assert store.get("b") == "2"

    def test_survives_new_instance(self, tmp_path):
        path = tmp_path / "filters.json"
        JsonFileStore(path).set("filters", "saved")
        assert JsonFileStore(path).get("filters") == "saved"

    def test_no_temporary_files_left_behind(self, tmp_path):
        store = JsonFileStore(tmp_path / "filters.json")
        store.set("filters", "{}")
        assert [p.name for p in tmp_path.iterdir()] == ["filters.json"]

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "filters.json"
        path.write_text("{broken")

        with pytest.raises(StorageError, match="corrupt"):
            JsonFileStore(path).get("filters")

    def test_non_object_file_raises(self, tmp_path):
        path = tmp_path / "filters.json"
        path.write_text("[1, 2]")

        with pytest.raises(StorageError, match="JSON object"):
            JsonFileStore(path).get("filters")

    def test_blank_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "filters.json"
        path.write_text("  \n")
        assert JsonFileStore(path).get("filters") is None

    def test_non_string_value_ignored(self, tmp_path):
        path = tmp_path / "filters.json"
        path.write_text('{"filters": {"version": "1.0"}}')
        assert JsonFileStore(path).get("filters") is None

    def test_write_failure_raises(self, tmp_path):
        store = JsonFileStore(tmp_path / "filters.json")
        with patch(
            "cost_dashboard.clients.storage.tempfile.mkstemp",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(StorageError, match="disk full"):
                store.set("filters", "{}")

    @pytest.mark.parametrize(
        "target, error",
        [
            ("cost_dashboard.clients.storage.os.replace", OSError("rename failed")),
            ("cost_dashboard.clients.storage.json.dump", TypeError("not serializable")),
        ],
    )
    def test_failed_write_removes_temporary_file(self, tmp_path, target, error):
        path = tmp_path / "filters.json"
        store = JsonFileStore(path)
        store.set("filters", "saved")

        with patch(target, side_effect=error):
            with pytest.raises(StorageError, match="Failed to write"):
                store.set("filters", "new")

        assert [p.name for p in tmp_path.iterdir()] == ["filters.json"]
        assert store.get("filters") == "saved"


class TestRedisStore:
    """Test the Redis store."""

    def test_init_with_empty_url(self):
        with pytest.raises(StorageError, match="redis_url cannot be empty"):
            RedisStore(redis_url="")

    def test_init_with_url_missing_scheme(self):
        with pytest.raises(StorageError, match="Invalid Redis URL"):
            RedisStore(redis_url="localhost:6379")

    @patch("cost_dashboard.clients.storage.redis.from_url")
    def test_client_options(self, mock_redis):
        RedisStore(redis_url="redis://cache:6379/1")

        mock_redis.assert_called_once()
        args, kwargs = mock_redis.call_args
        assert args == ("redis://cache:6379/1",)
        assert kwargs["decode_responses"] is True

    @patch("cost_dashboard.clients.storage.redis.from_url")
    def test_operations_delegate_to_client(self, mock_redis):
        mock_client = MagicMock()
        mock_client.get.return_value = '{"version": "1.0"}'
        mock_redis.return_value = mock_client
        store = RedisStore()

        assert store.get("filters") == '{"version": "1.0"}'
        store.set("filters", "{}")
        store.delete("filters")

        mock_client.get.assert_called_once_with("filters")
        mock_client.set.assert_called_once_with("filters", "{}")
        mock_client.delete.assert_called_once_with("filters")

    @pytest.mark.parametrize("operation", ["get", "set", "delete"])
    @patch("cost_dashboard.clients.storage.redis.from_url")
    def test_redis_errors_are_wrapped(self, mock_redis, operation):
        mock_client = MagicMock()
        getattr(mock_client, operation).side_effect = RedisConnectionError("Connection refused")
        mock_redis.return_value = mock_client
        store = RedisStore()

        args = ("filters", "{}") if operation == "set" else ("filters",)
        with pytest.raises(StorageError, match="Connection refused"):
            getattr(store, operation)(*args)

    @patch("cost_dashboard.clients.storage.redis.from_url")
    def test_close(self, mock_redis):
        mock_client = MagicMock()
        mock_redis.return_value = mock_client

        RedisStore().close()

        mock_client.close.assert_called_once()
