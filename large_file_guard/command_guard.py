"""Run host commands with the interception policy switched off.

Some host operations (e.g. verifying a tags table) open files as a side
effect and must never trigger the large-file prompt. The guard forces the
policy's application mode to ``never`` for the duration of such a command
and always restores the previous value, including when the command raises.
Nested guards restore in reverse order.

Usage:
    guard = CommandGuard(policy_config)

    with guard.policy_disabled("tags-verify-table"):
        verify_tags()

    verify = guard.disable_for("tags-verify-table")(verify_tags)
"""
import threading
from contextlib import contextmanager
from functools import wraps
from typing import Callable, TypeVar

from large_file_guard.config import DEFAULT_GUARDED_COMMANDS, ApplicationMode, PolicyConfig
from large_file_guard.guard_utils import log_event

T = TypeVar("T")

# Shared by the function form so concurrent callers serialize
_shared_lock = threading.RLock()


class CommandGuard:
    """Owner of the scoped policy override for one PolicyConfig."""

    def __init__(self, config: PolicyConfig, lock=None):
        self.config = config
        self._lock = lock or threading.RLock()

    @contextmanager
    def policy_disabled(self, command_name: str):
        """Disable interception while the ``with`` block runs."""
        with self._lock:
            previous = self.config.application_mode
            self.config.application_mode = ApplicationMode.NEVER
            log_event("command_guard", "disabled", {
                "command": command_name,
                "previous": previous.value,
            }, "debug")
            try:
                yield self.config
            finally:
                self.config.application_mode = previous
                log_event("command_guard", "restored", {
                    "command": command_name,
                    "mode": previous.value,
                }, "debug")

    def with_policy_disabled(self, command_name: str, thunk: Callable[[], T]) -> T:
        """Call ``thunk`` with interception disabled and return its result."""
        with self.policy_disabled(command_name):
            return thunk()

    def disable_for(self, command_name: str):
        """Decorator: every call of the wrapped command runs with interception disabled."""
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @wraps(func)
            def wrapper(*args, **kwargs):
                with self.policy_disabled(command_name):
                    return func(*args, **kwargs)
            return wrapper
        return decorator

    def guard_commands(self, commands: dict[str, Callable],
                       names=DEFAULT_GUARDED_COMMANDS) -> dict[str, Callable]:
        """Copy of a name -> command mapping with the named commands guarded."""
        return {
            name: self.disable_for(name)(command) if name in names else command
            for name, command in commands.items()
        }


def with_policy_disabled(command_name: str, thunk: Callable[[], T], config: PolicyConfig) -> T:
    """Call ``thunk`` with ``config``'s application mode forced to ``never``."""
    return CommandGuard(config, _shared_lock).with_policy_disabled(command_name, thunk)
