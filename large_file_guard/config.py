"""
Centralized configuration for large_file_guard.

All configurable constants in one place for easy tuning.
Other modules import from here for consistency.

Categories:
- Paths: Data directory and config file location
- Defaults: Sizes, application mode, excluded modes
- Patterns: Default mode table, guarded host commands
- Loading: Config file + environment overrides -> PolicyConfig
"""
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

import msgspec

from large_file_guard.errors import ConfigError
from large_file_guard.guard_utils import (
    DATA_DIR,
    atomic_write_json,
    cached_call,
    create_ttl_cache,
    fast_json_loads,
    file_lock,
    log_event,
    safe_load_json,
)
from large_file_guard.modes import ModeResolver, ModeTable, ResolutionConfig, build_mode_table

# =============================================================================
# Paths
# =============================================================================

CONFIG_FILE = DATA_DIR / "config.json"

# =============================================================================
# Defaults
# =============================================================================

class Defaults:
    """Default policy settings."""
    BATCH_SIZE = 1000000  # Bytes shown per chunk by the viewer
    THRESHOLD = 10000000  # Host large-file warning threshold
    APPLICATION = "ask"
    CASE_FOLD_FALLBACK = True
    OPERATION = "find-file"

    # Modes whose handlers need the whole file
    FORBIDDEN_MODES = (
        "archive-mode",
        "tar-mode",
        "jka-compr",
        "git-commit-mode",
        "image-mode",
        "doc-view-mode",
        "doc-view-mode-maybe",
        "ebrowse-tree-mode",
    )


class Timeouts:
    """Cache and lock durations (seconds)."""
    CONFIG_CACHE_TTL = 5.0
    CONFIG_LOCK_TIMEOUT = 10.0


# =============================================================================
# Patterns
# =============================================================================

# Ordered: first match wins
DEFAULT_MODE_TABLE = (
    (r"\.t(?:ar\.)?gz\Z", "tar-mode"),
    (r"\.tar\Z", "tar-mode"),
    (r"\.(?:zip|jar|war|ear|xpi|apk|7z|rar)\Z", "archive-mode"),
    (r"\.(?:gz|bz2|xz|Z|lz|zst)\Z", "jka-compr"),
    (r"\.(?:png|jpe?g|gif|bmp|tiff?|webp|svg)\Z", "image-mode"),
    (r"\.(?:pdf|dvi|ps|eps|odt|docx)\Z", "doc-view-mode-maybe"),
    (r"(?:\A|/)COMMIT_EDITMSG\Z", "git-commit-mode"),
    (r"(?:\A|/)BROWSE\Z", "ebrowse-tree-mode"),
    (r"\.py[iw]?\Z", "python-mode"),
    (r"\.c\Z", "c-mode"),
    (r"\.(?:cc|cpp|cxx|hh|hpp)\Z", "c++-mode"),
    (r"\.el\Z", "emacs-lisp-mode"),
    (r"\.json\Z", "js-json-mode"),
    (r"\.(?:ya?ml)\Z", "yaml-mode"),
    (r"\.xml\Z", "nxml-mode"),
    (r"\.csv\Z", "csv-mode"),
    (r"\.log\Z", "log-view-mode"),
    (r"\.(?:md|markdown)\Z", "markdown-mode"),
    (r"\.te?xt\Z", "text-mode"),
)

# Host commands that must never trigger interception
DEFAULT_GUARDED_COMMANDS = ("tags-verify-table",)


# =============================================================================
# Policy Configuration
# =============================================================================

class ApplicationMode(str, Enum):
    """When interception is offered."""
    NEVER = "never"
    ASK = "ask"
    DONT_ASK = "dont-ask"
    ALWAYS = "always"

    @classmethod
    def parse(cls, value) -> "ApplicationMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("_", "-"))
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ConfigError(f"Unknown application mode {value!r} (expected one of: {choices})")


@dataclass
class PolicyConfig:
    """Interception policy settings.

    Mutable only through explicit configuration changes; the decision logic
    reads it and never writes it.
    """
    batch_size_bytes: int = Defaults.BATCH_SIZE
    threshold_bytes: int | None = Defaults.THRESHOLD
    application_mode: ApplicationMode = ApplicationMode.ASK
    forbidden_modes: frozenset = field(default_factory=lambda: frozenset(Defaults.FORBIDDEN_MODES))

    def __post_init__(self):
        self.application_mode = ApplicationMode.parse(self.application_mode)
        self.forbidden_modes = frozenset(self.forbidden_modes)
        self.batch_size_bytes = _parse_int("batch_size", self.batch_size_bytes)
        if self.batch_size_bytes <= 0:
            raise ConfigError(f"batch_size must be positive, got {self.batch_size_bytes}")
        if self.threshold_bytes is not None:
            self.threshold_bytes = _parse_int("threshold", self.threshold_bytes)
            if self.threshold_bytes < 0:
                raise ConfigError(f"threshold must be non-negative, got {self.threshold_bytes}")

    def to_dict(self) -> dict:
        return {
            "batch_size": self.batch_size_bytes,
            "threshold": self.threshold_bytes,
            "application": self.application_mode.value,
            "forbidden_modes": sorted(self.forbidden_modes),
        }


def _parse_int(key: str, value) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}")


def _parse_bool(key: str, value) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on", "t"):
        return True
    if text in ("0", "false", "no", "off", "nil"):
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


# =============================================================================
# Loading
# =============================================================================

# Config keys accepted by `config set` and the config file
CONFIG_KEYS = ("batch_size", "threshold", "application", "forbidden_modes",
               "case_fold_fallback", "mode_table")

ENV_OVERRIDES = {
    "LARGE_FILE_GUARD_APPLICATION": "application",
    "LARGE_FILE_GUARD_BATCH_SIZE": "batch_size",
    "LARGE_FILE_GUARD_THRESHOLD": "threshold",
}

_config_cache = create_ttl_cache(maxsize=4, ttl=Timeouts.CONFIG_CACHE_TTL)


def read_config_file(path=None) -> dict:
    """Raw config file contents (cached briefly)."""
    path = Path(path) if path else CONFIG_FILE

    def load():
        raw = safe_load_json(path)
        if not isinstance(raw, dict):
            log_event("config", "invalid_file", {"path": str(path)}, "warning")
            return {}
        unknown = set(raw) - set(CONFIG_KEYS)
        if unknown:
            log_event("config", "unknown_keys", {"keys": sorted(unknown)}, "warning")
        return raw

    return cached_call(_config_cache, str(path), load)


def clear_config_cache():
    """Forget cached config file contents."""
    _config_cache.clear()


def _merged_settings(path=None) -> dict:
    settings = dict(read_config_file(path))
    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            settings[key] = value
    return settings


def policy_from_settings(settings: dict) -> PolicyConfig:
    """Build a validated PolicyConfig from a settings dict."""
    threshold = settings.get("threshold", Defaults.THRESHOLD)
    if isinstance(threshold, str) and threshold.strip().lower() in ("", "none", "nil"):
        threshold = None
    forbidden = settings.get("forbidden_modes", Defaults.FORBIDDEN_MODES)
    if isinstance(forbidden, str):
        forbidden = [m.strip() for m in forbidden.split(",") if m.strip()]
    return PolicyConfig(
        batch_size_bytes=settings.get("batch_size", Defaults.BATCH_SIZE),
        threshold_bytes=threshold,
        application_mode=settings.get("application", Defaults.APPLICATION),
        forbidden_modes=frozenset(forbidden),
    )


def load_policy_config(path=None) -> PolicyConfig:
    """Load the policy from the config file and environment overrides.

    Raises:
        ConfigError: a value is malformed (e.g. non-positive batch size)
    """
    return policy_from_settings(_merged_settings(path))


def load_resolution_config(path=None, platform: str = None) -> ResolutionConfig:
    settings = read_config_file(path)
    fallback = _parse_bool("case_fold_fallback",
                           settings.get("case_fold_fallback", Defaults.CASE_FOLD_FALLBACK))
    return ResolutionConfig.for_platform(platform, case_insensitive_fallback=fallback)


def load_mode_table(path=None) -> ModeTable:
    """Mode table from the config file, or the built-in default."""
    rows = read_config_file(path).get("mode_table")
    if rows is None:
        return build_mode_table(DEFAULT_MODE_TABLE)
    try:
        return build_mode_table(rows)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"mode_table entries must be [pattern, mode] pairs: {e}")


def load_resolver(path=None) -> ModeResolver:
    return ModeResolver(load_mode_table(path), load_resolution_config(path))


def update_config_file(key: str, value, path=None) -> dict:
    """Validate and persist one setting. Returns the new file contents.

    Raises:
        ConfigError: unknown key or invalid value
    """
    path = Path(path) if path else CONFIG_FILE
    if key not in CONFIG_KEYS:
        raise ConfigError(f"Unknown setting {key!r} (expected one of: {', '.join(CONFIG_KEYS)})")

    path.parent.mkdir(parents=True, exist_ok=True)
    with file_lock(path, timeout=Timeouts.CONFIG_LOCK_TIMEOUT):
        settings = safe_load_json(path)
        if not isinstance(settings, dict):
            settings = {}
        settings[key] = value
        if key == "case_fold_fallback":
            settings[key] = _parse_bool(key, value)
        elif key == "mode_table":
            settings[key] = _parse_mode_table_rows(value)
        else:
            # Validate and store the normalized form
            normalized = policy_from_settings(settings).to_dict()
            settings[key] = normalized[key]
        if not atomic_write_json(path, settings):
            raise ConfigError(f"Could not write {path}")

    clear_config_cache()
    log_event("config", "updated", {"key": key, "value": settings[key]})
    return settings


def _parse_mode_table_rows(value) -> list:
    try:
        rows = fast_json_loads(value) if isinstance(value, str) else value
        build_mode_table(rows)
    except (TypeError, ValueError, msgspec.DecodeError) as e:
        raise ConfigError(f"mode_table must be a JSON list of [pattern, mode] pairs: {e}")
    return rows


def with_overrides(config: PolicyConfig, **changes) -> PolicyConfig:
    """Copy of ``config`` with validated changes applied."""
    return replace(config, **changes)
