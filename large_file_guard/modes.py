"""Resolve a filename to the editing mode that would normally handle it.

The host supplies an ordered table of (pattern, mode) entries; the first
entry whose regular expression is found in the name wins. Before matching,
the name loses any backup/version suffix and any remote-location prefix.

Matching honors platform case sensitivity: case-insensitive platforms match
insensitively from the start, case-sensitive platforms try a strict pass and
only fall back to an insensitive pass when the fallback flag allows it.
"""
import re
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Union

from large_file_guard.guard_utils import LogOnce

# Platforms whose filesystems are natively case-insensitive
CASE_INSENSITIVE_PLATFORMS = ("win32", "cygwin")

# "foo~", "foo.~1~", "foo.~1.2~", "foo.~tag~"
VERSION_SUFFIX_RE = re.compile(r"(?:\.~[-\w:#@^.]*~|~)\Z")

# "/ssh:user@host:", "/host:", "/ssh:gw|sudo:root@box:", "sftp://host"
REMOTE_PREFIX_RES = (
    re.compile(r"\A/(?:[A-Za-z][-\w]*:(?:[^/:|]*@)?[^/:|]*\|)*"
               r"(?:[A-Za-z][-\w]*:)?(?:[^/:|@]+@)?[^/:|@]+:"),
    re.compile(r"\A[A-Za-z][-+.\w]*://[^/]*"),
)

ModeValue = Union[str, tuple]

_log_once = LogOnce(period_sec=300)


@dataclass(frozen=True)
class ModeEntry:
    """One row of the mode table.

    ``mode`` is a mode identifier, or a nested (pattern, mode) pair pointing
    at a secondary mode.
    """
    pattern: str
    mode: ModeValue


@dataclass(frozen=True)
class ResolutionConfig:
    """Case-sensitivity settings for mode matching."""
    case_sensitive_matching: bool = True
    case_insensitive_fallback: bool = True

    @classmethod
    def for_platform(cls, platform: str = None, case_insensitive_fallback: bool = True) -> "ResolutionConfig":
        """Derive matching rules from the host platform."""
        platform = platform or sys.platform
        return cls(
            case_sensitive_matching=platform not in CASE_INSENSITIVE_PLATFORMS,
            case_insensitive_fallback=case_insensitive_fallback,
        )


ModeTable = tuple[ModeEntry, ...]


def build_mode_table(rows: Iterable) -> ModeTable:
    """Build an immutable mode table from ModeEntry objects or (pattern, mode) pairs."""
    table = []
    for row in rows:
        if isinstance(row, ModeEntry):
            table.append(row)
        else:
            pattern, mode = row
            table.append(ModeEntry(pattern, _freeze(mode)))
    return tuple(table)


def _freeze(mode):
    # JSON config yields lists for nested pairs
    if isinstance(mode, list):
        return tuple(_freeze(m) for m in mode)
    return mode


# =============================================================================
# Filename Normalization
# =============================================================================

def strip_version_suffix(name: str) -> str:
    """Remove one trailing backup/version suffix."""
    match = VERSION_SUFFIX_RE.search(name)
    if match and match.start() > 0:
        return name[:match.start()]
    return name


def find_remote_prefix(name: str) -> str | None:
    """Return the remote-location prefix at the front of ``name``, if any."""
    for regex in REMOTE_PREFIX_RES:
        match = regex.match(name)
        if match:
            return match.group(0)
    return None


def strip_remote_prefix(name: str, remote_prefix: str = None) -> str:
    """Remove exactly the matched remote prefix from the front of ``name``."""
    prefix = remote_prefix if remote_prefix is not None else find_remote_prefix(name)
    if prefix and name.startswith(prefix):
        return name[len(prefix):]
    return name


def normalize_filename(name: str, remote_prefix: str = None) -> str:
    """Canonical name used for matching.

    Strips version suffixes and remote prefixes until neither applies, so
    normalizing an already normalized name is a no-op.
    """
    if remote_prefix:
        name = strip_remote_prefix(strip_version_suffix(name), remote_prefix)
    while True:
        stripped = strip_remote_prefix(strip_version_suffix(name))
        if stripped == name:
            return name
        name = stripped


# =============================================================================
# Table Lookup
# =============================================================================

@lru_cache(maxsize=512)
def _compile(pattern: str, ignore_case: bool) -> re.Pattern | None:
    try:
        return re.compile(pattern, re.IGNORECASE if ignore_case else 0)
    except re.error as e:
        _log_once.warning("modes", "bad_pattern", str(e), pattern=pattern)
        return None


def _unwrap(mode: ModeValue) -> str:
    while isinstance(mode, tuple):
        mode = mode[1]
    return mode


def _walk(name: str, table: ModeTable, ignore_case: bool) -> ModeValue | None:
    for entry in table:
        compiled = _compile(entry.pattern, ignore_case)
        if compiled is not None and compiled.search(name):
            return entry.mode
    return None


def resolve(filename: str, table: ModeTable, config: ResolutionConfig = None,
            remote_prefix: str = None) -> str | None:
    """Return the mode that would be selected for ``filename``, or None."""
    if config is None:
        config = ResolutionConfig.for_platform()

    name = normalize_filename(filename, remote_prefix)

    if config.case_sensitive_matching:
        mode = _walk(name, table, ignore_case=False)
        if mode is None and config.case_insensitive_fallback:
            mode = _walk(name, table, ignore_case=True)
    else:
        mode = _walk(name, table, ignore_case=True)

    if mode is None:
        return None
    return _unwrap(mode)


class ModeResolver:
    """Resolver bound to a table and resolution settings.

    Callable as ``resolver(path, remote_prefix=None)``.
    """

    def __init__(self, table: Iterable, config: ResolutionConfig = None):
        self.table = build_mode_table(table)
        self.config = config or ResolutionConfig.for_platform()

    def resolve(self, filename: str, remote_prefix: str = None) -> str | None:
        return resolve(filename, self.table, self.config, remote_prefix)

    def __call__(self, filename: str, remote_prefix: str = None) -> str | None:
        return self.resolve(filename, remote_prefix)
