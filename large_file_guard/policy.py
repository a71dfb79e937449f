"""Interception policy: decide how a file about to be opened should be opened.

Rules run in order and the first applicable one wins:

1. No size (absent or zero)                         -> Proceed
2. Policy ``never``, no path, or forbidden mode     -> Proceed
3. Policy ``always``                                -> Substitute
4. No threshold, or size within threshold or batch  -> Proceed
5. Policy ``dont-ask``                              -> Substitute
6. Policy ``ask``                                   -> prompt the user

``always`` bypasses the size checks entirely; a one-byte file is still
substituted.

Usage:
    policy = InterceptionPolicy(load_policy_config(), load_resolver())
    action = policy.decide(FileDescriptor("/var/log/huge.log", size_bytes=2_000_000))
    if action is Action.SUBSTITUTE:
        viewer.open(path)
"""
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from large_file_guard.config import ApplicationMode, Defaults, PolicyConfig
from large_file_guard.errors import InvalidPromptInput
from large_file_guard.guard_utils import log_event
from large_file_guard.prompt import CHOICE_HINT, Choice, ask_choice, parse_choice


class Action(str, Enum):
    """Outcome of a decision."""
    PROCEED = "proceed"
    SUBSTITUTE = "substitute"
    ABORT = "abort"


CHOICE_ACTIONS = {
    Choice.PROCEED: Action.PROCEED,
    Choice.SUBSTITUTE: Action.SUBSTITUTE,
    Choice.ABORT: Action.ABORT,
}


@dataclass(frozen=True)
class FileDescriptor:
    """What the host knows about a file it is about to open."""
    path: str | None
    size_bytes: int | None = None
    remote_prefix: str | None = None
    declared_mode: str | None = None


Resolver = Callable[..., "str | None"]
PromptFn = Callable[[str], object]

SIZE_PREFIXES = ("", "k", "M", "G", "T", "P", "E", "Z", "Y")


def human_size(size: float, flavor: str | None = None) -> str:
    """Human-readable file size.

    Args:
        size: Size in bytes
        flavor: None for powers of 1024 with k/M/G suffixes, "si" for powers
                of 1000, "iec" for powers of 1024 with KiB/MiB suffixes

    Examples:
        human_size(2_000_000)         -> "1.9M"
        human_size(2_000_000, "si")   -> "2M"
        human_size(2_000_000, "iec")  -> "1.9MiB"
    """
    power = 1000.0 if flavor == "si" else 1024.0
    size = float(size)
    index = 0
    while size >= power and index < len(SIZE_PREFIXES) - 1:
        size /= power
        index += 1

    prefix = SIZE_PREFIXES[index]
    if flavor == "iec":
        unit = "B" if not prefix else ("K" if prefix == "k" else prefix) + "iB"
    else:
        unit = prefix

    fraction = size % 1.0
    if size < 10 and 0.05 <= fraction < 0.95:
        return f"{size:.1f}{unit}"
    return f"{size:.0f}{unit}"


def prompt_message(path: str, size: int, operation: str) -> str:
    """Question shown before opening a large file."""
    name = os.path.basename(path) if path else ""
    return f"File {name} is large ({human_size(size)}): {operation} {CHOICE_HINT}"


def _ask(prompt_fn: PromptFn, message: str) -> Choice:
    while True:
        try:
            return parse_choice(prompt_fn(message))
        except InvalidPromptInput as e:
            log_event("policy", "invalid_prompt_input", {"key": str(e.key)}, "debug")


def _resolve_mode(descriptor: FileDescriptor, resolver: Resolver | None) -> str | None:
    if descriptor.declared_mode:
        return descriptor.declared_mode
    if resolver is None or not descriptor.path:
        return None
    return resolver(descriptor.path, remote_prefix=descriptor.remote_prefix)


def decide(descriptor: FileDescriptor, config: PolicyConfig, resolver: Resolver = None,
           prompt_fn: PromptFn = ask_choice, operation: str = Defaults.OPERATION) -> Action:
    """Pick how ``descriptor`` should be opened.

    Args:
        descriptor: File about to be opened, with its size already known
        config: Policy settings
        resolver: Callable ``resolver(path, remote_prefix=...)`` returning the
                  file's mode; only used when no mode is declared
        prompt_fn: Blocking prompt returning a Choice or a raw key; called
                   again until it returns a recognized answer
        operation: Name of the attempted operation, shown in the prompt

    Returns:
        Action.PROCEED, Action.SUBSTITUTE or Action.ABORT
    """
    size = descriptor.size_bytes
    if not size:
        return _decided(Action.PROCEED, "no_size", descriptor)

    mode_setting = config.application_mode
    if mode_setting is ApplicationMode.NEVER or not descriptor.path:
        return _decided(Action.PROCEED, "disabled", descriptor)

    mode = _resolve_mode(descriptor, resolver)
    if mode is not None and mode in config.forbidden_modes:
        return _decided(Action.PROCEED, "forbidden_mode", descriptor, mode=mode)

    if mode_setting is ApplicationMode.ALWAYS:
        return _decided(Action.SUBSTITUTE, "always", descriptor, mode=mode)

    threshold = config.threshold_bytes
    if threshold is None or size <= threshold or size <= config.batch_size_bytes:
        return _decided(Action.PROCEED, "below_threshold", descriptor, mode=mode)

    if mode_setting is ApplicationMode.DONT_ASK:
        return _decided(Action.SUBSTITUTE, "dont_ask", descriptor, mode=mode)

    choice = _ask(prompt_fn, prompt_message(descriptor.path, size, operation))
    return _decided(CHOICE_ACTIONS[choice], "asked", descriptor, mode=mode)


def _decided(action: Action, rule: str, descriptor: FileDescriptor, mode: str = None) -> Action:
    log_event("policy", "decision", {
        "action": action.value,
        "rule": rule,
        "file": descriptor.path,
        "size": descriptor.size_bytes,
        "mode": mode,
    }, "debug")
    return action


class InterceptionPolicy:
    """Policy bound to its configuration, resolver and prompt.

    ``config`` may be a PolicyConfig or a zero-argument callable returning
    one, so callers can pass ``load_policy_config`` to pick up config file
    changes.
    """

    def __init__(self, config: PolicyConfig | Callable[[], PolicyConfig],
                 resolver: Resolver = None, prompt_fn: PromptFn = ask_choice):
        self._config = config
        self.resolver = resolver
        self.prompt_fn = prompt_fn

    @property
    def config(self) -> PolicyConfig:
        if callable(self._config):
            return self._config()
        return self._config

    def decide(self, descriptor: FileDescriptor, operation: str = Defaults.OPERATION) -> Action:
        return decide(descriptor, self.config, self.resolver, self.prompt_fn, operation)
