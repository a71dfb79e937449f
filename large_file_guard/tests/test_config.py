"""
Tests for large_file_guard/config.py.

Covers:
- PolicyConfig defaults and validation
- ApplicationMode parsing
- Config file loading, environment overrides and persistence
- Mode table loading
"""
import json

import pytest

from large_file_guard import config
from large_file_guard.config import (
    DEFAULT_MODE_TABLE,
    ApplicationMode,
    Defaults,
    PolicyConfig,
    load_mode_table,
    load_policy_config,
    load_resolution_config,
    policy_from_settings,
    update_config_file,
    with_overrides,
)
from large_file_guard.errors import ConfigError
from large_file_guard.modes import ModeEntry


class TestPolicyConfig:
    """Test PolicyConfig dataclass."""

    def test_default_values(self):
        policy = PolicyConfig()
        assert policy.batch_size_bytes == 1000000
        assert policy.threshold_bytes == 10000000
        assert policy.application_mode is ApplicationMode.ASK
        assert "tar-mode" in policy.forbidden_modes
        assert "image-mode" in policy.forbidden_modes

    @pytest.mark.parametrize("batch", [0, -1])
    def test_rejects_non_positive_batch(self, batch):
        with pytest.raises(ConfigError):
            PolicyConfig(batch_size_bytes=batch)

    def test_rejects_negative_threshold(self):
        with pytest.raises(ConfigError):
            PolicyConfig(threshold_bytes=-5)

    def test_rejects_non_integer(self):
        with pytest.raises(ConfigError):
            PolicyConfig(batch_size_bytes="lots")
        with pytest.raises(ConfigError):
            PolicyConfig(batch_size_bytes=True)

    def test_parses_string_values(self):
        policy = PolicyConfig(batch_size_bytes="2048", threshold_bytes="4096", application_mode="dont-ask")
        assert policy.batch_size_bytes == 2048
        assert policy.threshold_bytes == 4096
        assert policy.application_mode is ApplicationMode.DONT_ASK

    def test_threshold_may_be_absent(self):
        assert PolicyConfig(threshold_bytes=None).threshold_bytes is None

    def test_to_dict(self):
        data = PolicyConfig(forbidden_modes={"b", "a"}).to_dict()
        assert data["forbidden_modes"] == ["a", "b"]
        assert data["application"] == "ask"

    def test_with_overrides_validates(self):
        policy = with_overrides(PolicyConfig(), application_mode="always")
        assert policy.application_mode is ApplicationMode.ALWAYS
        with pytest.raises(ConfigError):
            with_overrides(PolicyConfig(), batch_size_bytes=0)


class TestApplicationMode:
    """Test ApplicationMode parsing."""

    @pytest.mark.parametrize("value, expected", [
        ("never", ApplicationMode.NEVER),
        ("ASK", ApplicationMode.ASK),
        ("dont_ask", ApplicationMode.DONT_ASK),
        (" dont-ask ", ApplicationMode.DONT_ASK),
        (ApplicationMode.ALWAYS, ApplicationMode.ALWAYS),
    ])
    def test_parse(self, value, expected):
        assert ApplicationMode.parse(value) is expected

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Unknown application mode"):
            ApplicationMode.parse("sometimes")


class TestLoading:
    """Test config file and environment loading."""

    def test_defaults_without_file(self, config_file):
        policy = load_policy_config()
        assert policy == PolicyConfig()

    def test_reads_file(self, config_file):
        config_file.write_text(json.dumps({
            "batch_size": 4096,
            "threshold": None,
            "application": "always",
            "forbidden_modes": ["x-mode"],
        }))
        policy = load_policy_config()
        assert policy.batch_size_bytes == 4096
        assert policy.threshold_bytes is None
        assert policy.application_mode is ApplicationMode.ALWAYS
        assert policy.forbidden_modes == frozenset({"x-mode"})

    def test_invalid_file_falls_back_to_defaults(self, config_file):
        config_file.write_text("{not json")
        assert load_policy_config() == PolicyConfig()

    def test_non_object_file_falls_back_to_defaults(self, config_file):
        config_file.write_text("[1, 2]")
        assert load_policy_config() == PolicyConfig()

    def test_invalid_value_rejected(self, config_file):
        config_file.write_text(json.dumps({"batch_size": 0}))
        with pytest.raises(ConfigError):
            load_policy_config()

    def test_environment_overrides(self, config_file, monkeypatch):
        config_file.write_text(json.dumps({"application": "always"}))
        monkeypatch.setenv("LARGE_FILE_GUARD_APPLICATION", "never")
        monkeypatch.setenv("LARGE_FILE_GUARD_BATCH_SIZE", "1234")
        monkeypatch.setenv("LARGE_FILE_GUARD_THRESHOLD", "none")
        policy = load_policy_config()
        assert policy.application_mode is ApplicationMode.NEVER
        assert policy.batch_size_bytes == 1234
        assert policy.threshold_bytes is None

    def test_comma_separated_forbidden_modes(self):
        policy = policy_from_settings({"forbidden_modes": "a-mode, b-mode"})
        assert policy.forbidden_modes == frozenset({"a-mode", "b-mode"})

    def test_resolution_config(self, config_file):
        config_file.write_text(json.dumps({"case_fold_fallback": False}))
        resolution = load_resolution_config(platform="linux")
        assert resolution.case_sensitive_matching is True
        assert resolution.case_insensitive_fallback is False
        assert load_resolution_config(platform="win32").case_sensitive_matching is False

    def test_default_mode_table(self, config_file):
        table = load_mode_table()
        assert len(table) == len(DEFAULT_MODE_TABLE)
        assert table[0] == ModeEntry(*DEFAULT_MODE_TABLE[0])

    def test_mode_table_from_file(self, config_file):
        config_file.write_text(json.dumps({"mode_table": [["\\.foo\\Z", "foo-mode"]]}))
        assert load_mode_table() == (ModeEntry("\\.foo\\Z", "foo-mode"),)

    def test_malformed_mode_table(self, config_file):
        config_file.write_text(json.dumps({"mode_table": [["only-pattern"]]}))
        with pytest.raises(ConfigError):
            load_mode_table()


class TestUpdateConfigFile:
    """Test persisting settings."""

    def test_set_application(self, config_file):
        settings = update_config_file("application", "DONT_ASK")
        assert settings["application"] == "dont-ask"
        assert json.loads(config_file.read_text())["application"] == "dont-ask"
        assert load_policy_config().application_mode is ApplicationMode.DONT_ASK

    def test_set_batch_size_normalized(self, config_file):
        update_config_file("batch_size", "65536")
        assert json.loads(config_file.read_text())["batch_size"] == 65536

    def test_set_forbidden_modes(self, config_file):
        update_config_file("forbidden_modes", "b-mode,a-mode")
        assert json.loads(config_file.read_text())["forbidden_modes"] == ["a-mode", "b-mode"]

    def test_set_case_fold_fallback(self, config_file):
        update_config_file("case_fold_fallback", "no")
        assert json.loads(config_file.read_text())["case_fold_fallback"] is False

    def test_set_mode_table_json(self, config_file):
        update_config_file("mode_table", '[["\\\\.foo\\\\Z", "foo-mode"]]')
        assert load_mode_table() == (ModeEntry("\\.foo\\Z", "foo-mode"),)

    def test_rejects_invalid_value(self, config_file):
        with pytest.raises(ConfigError):
            update_config_file("batch_size", "0")
        assert not config_file.exists()

    def test_rejects_unknown_key(self, config_file):
        with pytest.raises(ConfigError, match="Unknown setting"):
            update_config_file("colour", "blue")

    def test_rejects_bad_mode_table(self, config_file):
        with pytest.raises(ConfigError):
            update_config_file("mode_table", "not json")

    def test_keeps_other_keys(self, config_file):
        update_config_file("application", "always")
        update_config_file("batch_size", "2048")
        data = json.loads(config_file.read_text())
        assert data["application"] == "always"
        assert data["batch_size"] == 2048


def test_defaults_operation():
    assert Defaults.OPERATION == "find-file"
    assert config.DEFAULT_GUARDED_COMMANDS == ("tags-verify-table",)
