"""Tests for guard_utils package."""
import importlib
from unittest.mock import patch

import pytest
from loguru import logger

from large_file_guard.guard_utils import logging as guard_logging
from large_file_guard.guard_utils import (
    LogOnce,
    atomic_write_json,
    cached_call,
    configure_logging,
    create_ttl_cache,
    fast_json_dumps,
    fast_json_loads,
    file_lock,
    log_event,
    safe_load_json,
    safe_stat,
)


class TestJson:
    """Tests for JSON helpers."""

    def test_loads_dumps(self):
        assert fast_json_loads(fast_json_dumps({"a": [1, None]})) == {"a": [1, None]}

    def test_safe_load_missing(self, tmp_path):
        assert safe_load_json(tmp_path / "nope.json", {"x": 1}) == {"x": 1}

    def test_safe_load_invalid(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{")
        assert safe_load_json(path) == {}

    def test_safe_load_default_is_copied(self, tmp_path):
        default = {"x": 1}
        result = safe_load_json(tmp_path / "nope.json", default)
        result["x"] = 2
        assert default == {"x": 1}

    def test_atomic_write(self, tmp_path):
        path = tmp_path / "sub" / "out.json"
        assert atomic_write_json(path, {"batch_size": 10}) is True
        assert safe_load_json(path) == {"batch_size": 10}
        assert [p.name for p in path.parent.iterdir()] == ["out.json"]


class TestFileLock:
    """Tests for path-based locking."""

    def test_lock_guards_block(self, tmp_path):
        target = tmp_path / "config.json"
        with file_lock(target, timeout=1):
            target.write_text("{}")
        assert target.read_text() == "{}"


class TestCache:
    """Tests for cache helpers."""

    def test_cached_call_loads_once(self):
        cache = create_ttl_cache(maxsize=2, ttl=60)
        calls = []

        def loader():
            calls.append(1)
            return "value"

        assert cached_call(cache, "k", loader) == "value"
        assert cached_call(cache, "k", loader) == "value"
        assert len(calls) == 1

    def test_failed_load_not_cached(self):
        cache = create_ttl_cache()

        def loader():
            raise OSError("disk")

        with pytest.raises(OSError):
            cached_call(cache, "k", loader)
        assert "k" not in cache


class TestLogging:
    """Tests for logging helpers."""

    def test_log_event_never_raises(self):
        with patch("large_file_guard.guard_utils.logging.logger") as logger:
            logger.info.side_effect = RuntimeError("sink down")
            log_event("test", "event", {"a": 1})

    def test_log_once_suppresses_duplicates(self):
        log_once = LogOnce(period_sec=300)
        with patch("large_file_guard.guard_utils.logging.log_event") as log:
            log_once.warning("modes", "bad_pattern", "same")
            log_once.warning("modes", "bad_pattern", "same")
            log_once.warning("modes", "bad_pattern", "other")
        assert log.call_count == 2


class TestConfigureLogging:
    """Tests for event sink setup."""

    def test_import_keeps_host_sinks(self):
        """Importing the package must not touch sinks the host installed."""
        seen = []
        host_sink = logger.add(seen.append, format="{message}")
        try:
            importlib.reload(guard_logging)
            logger.info("host message")
        finally:
            logger.remove(host_sink)
        assert len(seen) == 1
        assert "host message" in seen[0]

    def test_event_sink_added_beside_host_sink(self, tmp_path):
        seen = []
        host_sink = logger.add(seen.append, format="{message}")
        log_file = tmp_path / "logs" / "events.jsonl"
        try:
            configure_logging(log_file)
            log_event("test", "configured", {"a": 1})
            logger.complete()
        finally:
            logger.remove(host_sink)
            configure_logging()
        assert any("configured" in message for message in seen)
        assert "configured" in log_file.read_text()


class TestSafeStat:
    """Tests for safe_stat."""

    def test_missing(self, tmp_path):
        assert safe_stat(tmp_path / "missing") is None

    def test_existing(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"abc")
        assert safe_stat(path).st_size == 3
