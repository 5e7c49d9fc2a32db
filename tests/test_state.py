"""
Tests for the checkpoint store.
"""

import json
import os

import pytest

from warehouse_sync.state import CheckpointStore


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "sync_state.json")


class TestLoad:

    def test_missing_file_gives_empty_state(self, state_path):
        assert CheckpointStore(state_path).load() == {}
        assert not os.path.exists(state_path)

    def test_empty_file_gives_empty_state_and_is_rewritten(self, state_path):
        with open(state_path, "w") as f:
            f.write("   \n")

        assert CheckpointStore(state_path).load() == {}
        with open(state_path) as f:
            assert json.load(f) == {}

    def test_corrupt_file_gives_empty_state(self, state_path):
        with open(state_path, "w") as f:
            f.write("{not json")

        assert CheckpointStore(state_path).load() == {}
        with open(state_path) as f:
            assert json.load(f) == {}

    def test_undecodable_bytes_give_empty_state(self, state_path):
        with open(state_path, "wb") as f:
            f.write(b'{"orders": "\xff\xfe"}')

        assert CheckpointStore(state_path).load() == {}
        with open(state_path) as f:
            assert json.load(f) == {}

    def test_non_object_document_gives_empty_state(self, state_path):
        with open(state_path, "w") as f:
            json.dump(["orders"], f)

        assert CheckpointStore(state_path).load() == {}

    def test_non_string_checkpoints_are_dropped(self, state_path):
        with open(state_path, "w") as f:
            json.dump({"orders": "2024-01-01T00:00:00+00:00", "users": 5}, f)

        assert CheckpointStore(state_path).load() == {"orders": "2024-01-01T00:00:00+00:00"}

    def test_empty_object_is_valid(self, state_path):
        with open(state_path, "w") as f:
            f.write("{}")

        assert CheckpointStore(state_path).load() == {}


class TestSave:

    def test_round_trip(self, state_path):
        store = CheckpointStore(state_path)
        state = {
            "orders": "2024-06-01T12:00:00.123456+00:00",
            "customers": "2024-06-01T12:00:01+02:00",
        }

        assert store.save(state) is True
        assert store.load() == state

    def test_creates_parent_directory(self, tmp_path):
        path = str(tmp_path / "nested" / "dir" / "state.json")

        assert CheckpointStore(path).save({"orders": "2024-01-01T00:00:00+00:00"}) is True
        assert os.path.exists(path)

    def test_write_failure_is_reported_not_raised(self, tmp_path):
        # A directory at the target path makes open() fail
        path = tmp_path / "state.json"
        path.mkdir()

        assert CheckpointStore(str(path)).save({"orders": "x"}) is False

    def test_pretty_printed(self, state_path):
        CheckpointStore(state_path).save({"orders": "t"})
        with open(state_path) as f:
            assert f.read() == '{\n  "orders": "t"\n}'
