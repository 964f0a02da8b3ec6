#!/usr/bin/env python3
"""Tests for checkpoint persistence."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src directory to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from signal_relay.core.exceptions import ParseError
from signal_relay.state import CheckpointStore


class TestCheckpointStore:
    """Load/advance semantics of CheckpointStore"""

    @pytest.fixture
    def checkpoint_file(self, tmp_path):
        return tmp_path / "progress.json"

    @pytest.fixture
    def store(self, checkpoint_file):
        return CheckpointStore(checkpoint_file)

    def test_fresh_store_loads_zero(self, store, checkpoint_file):
        assert store.load() == 0
        assert store.last_sent_at_ms == 0
        assert not checkpoint_file.exists()

    def test_advance_persists_json_object(self, store, checkpoint_file):
        store.advance(1234)
        assert json.loads(checkpoint_file.read_text()) == {"lastSentAtMs": 1234}
        assert store.last_sent_at_ms == 1234

    def test_advance_survives_new_instance(self, store, checkpoint_file):
        store.advance(100)
        store.advance(300)
        assert CheckpointStore(checkpoint_file).load() == 300

    def test_reads_checkpoint_written_by_original_tool(self, checkpoint_file):
        checkpoint_file.write_text(json.dumps({"lastSentDateMs": 1699999999999}))
        assert CheckpointStore(checkpoint_file).load() == 1699999999999

    def test_corrupted_file_is_parse_error(self, checkpoint_file):
        checkpoint_file.write_text("{truncated")
        with pytest.raises(ParseError):
            CheckpointStore(checkpoint_file).load()

    def test_binary_file_is_parse_error(self, checkpoint_file):
        checkpoint_file.write_bytes(b"\xff\xfe\x00")
        with pytest.raises(ParseError, match="invalid UTF-8"):
            CheckpointStore(checkpoint_file).load()

    @pytest.mark.parametrize("content", [
        {},
        {"lastSentAtMs": "100"},
        {"lastSentAtMs": -1},
        {"lastSentAtMs": True},
        [100],
    ])
    def test_invalid_value_is_parse_error(self, checkpoint_file, content):
        checkpoint_file.write_text(json.dumps(content))
        with pytest.raises(ParseError):
            CheckpointStore(checkpoint_file).load()

    def test_failed_write_keeps_previous_value(self, store, checkpoint_file):
        store.advance(100)

        with patch("signal_relay.state.checkpoint_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.advance(200)

        assert CheckpointStore(checkpoint_file).load() == 100
        assert store.last_sent_at_ms == 100
        leftovers = [p for p in checkpoint_file.parent.iterdir() if p.name.startswith(".tmp_checkpoint_")]
        assert leftovers == []

    def test_creates_missing_parent_directory(self, tmp_path):
        store = CheckpointStore(tmp_path / "nested" / "dir" / "progress.json")
        store.advance(42)
        assert store.load() == 42

    def test_reset_returns_to_fresh(self, store, checkpoint_file):
        store.advance(500)
        store.reset()
        assert not checkpoint_file.exists()
        assert store.load() == 0
        # Resetting twice is harmless
        store.reset()

    def test_lock_is_exclusive(self, store, checkpoint_file):
        other = CheckpointStore(checkpoint_file)

        assert store.acquire_lock()
        try:
            assert not other.acquire_lock()
        finally:
            store.release_lock()

        assert other.acquire_lock()
        other.release_lock()

    def test_release_without_lock_is_noop(self, store):
        store.release_lock()
