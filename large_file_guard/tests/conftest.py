"""
Pytest configuration for large_file_guard tests.

Points the data directory at a temporary location before any package module
is imported, so the event log and config files never touch the real home
directory.
"""
import os
import tempfile

os.environ.setdefault("LARGE_FILE_GUARD_DIR", tempfile.mkdtemp(prefix="large-file-guard-tests-"))

import pytest  # noqa: E402

from large_file_guard import config  # noqa: E402
from large_file_guard.config import ENV_OVERRIDES  # noqa: E402
from large_file_guard.guard_utils import configure_logging  # noqa: E402

configure_logging()


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Isolated config file path with environment overrides cleared."""
    path = tmp_path / "config.json"
    monkeypatch.setattr(config, "CONFIG_FILE", path)
    for env_name in ENV_OVERRIDES:
        monkeypatch.delenv(env_name, raising=False)
    config.clear_config_cache()
    yield path
    config.clear_config_cache()


class ScriptedPrompt:
    """prompt_fn replacement that answers from a fixed list of keys."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)
        return self.answers.pop(0)

    @property
    def calls(self) -> int:
        return len(self.messages)


@pytest.fixture
def scripted_prompt():
    """Factory: scripted_prompt("x", "v") answers "x" then "v"."""
    return ScriptedPrompt
