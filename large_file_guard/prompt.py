"""Blocking single-keystroke prompt.

The default ``prompt_fn`` for the policy: shows a message and reads one key
at a time until a recognized choice arrives. Keys are case-insensitive:

    o  open normally
    v  view with the large-file viewer
    a  abort
"""
from enum import Enum
from typing import Callable

import click

from large_file_guard.errors import InvalidPromptInput
from large_file_guard.guard_utils import log_event


class Choice(str, Enum):
    """User answer to the large-file prompt."""
    PROCEED = "o"
    SUBSTITUTE = "v"
    ABORT = "a"


CHOICE_HINT = "normally (o), open with the large-file viewer (v) or abort (a)"


def parse_choice(key) -> Choice:
    """Map a key (or a Choice) to a Choice.

    Raises:
        InvalidPromptInput: key is not one of o/v/a in either case
    """
    if isinstance(key, Choice):
        return key
    if isinstance(key, str) and len(key) == 1:
        try:
            return Choice(key.lower())
        except ValueError:
            pass
    raise InvalidPromptInput(key)


def read_key() -> str:
    """Read a single keystroke without waiting for Enter.

    Ctrl-C raises KeyboardInterrupt and Ctrl-D raises EOFError.
    """
    return click.getchar()


def _write_stderr(text: str):
    click.echo(text, err=True, nl=False)


def ask_choice(message: str, read: Callable[[], str] = None,
               write: Callable[[str], None] = _write_stderr) -> Choice:
    """Show ``message`` and block until a recognized key is read.

    Unrecognized keys are reported and the prompt is shown again. An empty
    read (end of input) raises EOFError rather than looping forever.
    """
    read = read or read_key
    write(message + " ")
    while True:
        key = read()
        if key == "":
            write("\n")
            raise EOFError("No answer to large-file prompt")
        try:
            choice = parse_choice(key)
        except InvalidPromptInput as e:
            log_event("prompt", "invalid_key", {"key": e.key}, "debug")
            write(f"\nPlease answer o, v or a. {message} ")
            continue
        write(key + "\n")
        return choice
