"""
Guard utilities package - shared helpers for large_file_guard.

Usage:
    from large_file_guard.guard_utils import log_event, safe_load_json
    # or
    from large_file_guard.guard_utils.logging import log_event
"""

from .logging import (
    DATA_DIR,
    LOG_FILE,
    LogOnce,
    configure_logging,
    graceful_main,
    log_event,
)

from .io import (
    fast_json_loads,
    fast_json_dumps,
    file_lock,
    safe_load_json,
    atomic_write_json,
    safe_stat,
    expand_path,
)

from .cache import (
    create_ttl_cache,
    cached_call,
)


__all__ = [
    # Logging
    "DATA_DIR",
    "LOG_FILE",
    "LogOnce",
    "configure_logging",
    "graceful_main",
    "log_event",
    # I/O
    "fast_json_loads",
    "fast_json_dumps",
    "file_lock",
    "safe_load_json",
    "atomic_write_json",
    "safe_stat",
    "expand_path",
    # Cache
    "create_ttl_cache",
    "cached_call",
]
