"""
Logging utilities.

Uses loguru for structured JSON logging with automatic rotation.
Includes log-once pattern for suppressing duplicate warnings.
"""
import os
import sys
import time
from functools import wraps
from pathlib import Path
from typing import Callable

from loguru import logger


# =============================================================================
# Log-Once Pattern - Suppress duplicate warnings within a time window
# =============================================================================

class LogOnce:
    """Rate-limited logging that suppresses duplicates within a time window.

    Usage:
        _log_once = LogOnce(period_sec=300)

        try:
            ...
        except re.error as e:
            _log_once.warning("modes", "bad_pattern", str(e))
    """

    def __init__(self, period_sec: int = 300):
        self.period_sec = period_sec
        self._cache: dict[tuple, tuple[float, int]] = {}  # key -> (first_seen, count)

    def _should_log(self, key: tuple) -> tuple[bool, int]:
        """Check if this message should be logged.

        Returns:
            (should_log, suppressed_count) - whether to log and how many were suppressed
        """
        now = time.time()

        if key in self._cache:
            first_seen, count = self._cache[key]
            if now - first_seen < self.period_sec:
                self._cache[key] = (first_seen, count + 1)
                return False, 0
            suppressed = count - 1
            self._cache[key] = (now, 1)
            return True, suppressed

        self._cache[key] = (now, 1)
        return True, 0

    def _log(self, component: str, event_type: str, message: str, level: str, extra: dict):
        key = (component, event_type, message)
        should_log, suppressed = self._should_log(key)

        if should_log:
            data = {"msg": message, **extra}
            if suppressed > 0:
                data["suppressed"] = suppressed
            log_event(component, event_type, data, level)

    def error(self, component: str, event_type: str, message: str, **extra):
        """Log an error, suppressing duplicates within the time window."""
        self._log(component, event_type, message, "error", extra)

    def warning(self, component: str, event_type: str, message: str, **extra):
        """Log a warning, suppressing duplicates within the time window."""
        self._log(component, event_type, message, "warning", extra)


DATA_DIR = Path(os.environ.get(
    "LARGE_FILE_GUARD_DIR", Path.home() / ".config" / "large-file-guard"
))
LOG_FILE = DATA_DIR / "events.jsonl"

_sink_id: int | None = None


def configure_logging(log_file: Path = None, exclusive: bool = False) -> int:
    """
    Install the JSON event sink (10MB rotation, keep 3 files).

    Call from an application entry point. Importing the package installs
    nothing: library callers keep their own loguru sinks. Calling again
    replaces only the sink installed here.

    Args:
        log_file: Event log path (default LOG_FILE)
        exclusive: Also remove every other sink, loguru's stderr default
            included. Only for entry points that own the process.

    Returns:
        The loguru handler id of the file sink
    """
    global _sink_id
    log_file = Path(log_file) if log_file else LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    if exclusive:
        logger.remove()
    elif _sink_id is not None:
        try:
            logger.remove(_sink_id)
        except ValueError:
            pass  # already removed by the host
    _sink_id = logger.add(
        log_file,
        format="{message}",
        serialize=True,
        rotation="10 MB",
        retention=3,
        compression="gz",
        enqueue=True,
        catch=True,
    )
    return _sink_id


def log_event(component: str, event_type: str, data: dict = None, level: str = "info"):
    """
    Log structured event using loguru.

    Args:
        component: Name of the emitting component (e.g., "policy")
        event_type: Event type (e.g., "decision", "error")
        data: Additional context data
        level: Log level (debug, info, warning, error)
    """
    try:
        log_func = getattr(logger, level, logger.info)
        log_func(event_type, component=component, **(data or {}))
    except Exception:
        pass  # Never raise


def graceful_main(component: str):
    """
    Decorator for command-line entry points.

    Errors are logged and reported as a one-line message on stderr with exit
    status 1 instead of a traceback. Ctrl-C exits with status 130.

    Usage:
        @graceful_main("cli")
        def main(argv=None) -> int:
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                sys.stderr.write("\n")
                return 130
            except Exception as e:
                log_event(component, "error", {"type": type(e).__name__, "msg": str(e)}, "error")
                sys.stderr.write(f"large-file-guard: {e}\n")
                return 1
        return wrapper
    return decorator
