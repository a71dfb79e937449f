"""
File I/O utilities with locking and graceful error handling.

Includes:
- Fast JSON (fast_json_loads, fast_json_dumps) backed by msgspec
- File locking (file_lock)
- JSON I/O (safe_load_json, atomic_write_json)
- Safe file operations (safe_stat, expand_path)
"""
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path

import msgspec
from filelock import FileLock

from .logging import log_event

PathLike = str | Path

_json_encoder = msgspec.json.Encoder()
_json_decoder = msgspec.json.Decoder()


def fast_json_loads(data: bytes | str):
    """Decode JSON using msgspec."""
    return _json_decoder.decode(data)


def fast_json_dumps(obj) -> bytes:
    """Encode JSON using msgspec."""
    return _json_encoder.encode(obj)


@contextmanager
def file_lock(path: PathLike, timeout: float = 10.0):
    """
    Context manager for exclusive path-based locking.

    Usage:
        with file_lock("/path/to/config.json"):
            # perform read-modify-write
    """
    lock = FileLock(f"{path}.lock", timeout=timeout)
    lock.acquire()
    try:
        yield
    finally:
        lock.release()


def safe_load_json(path: Path, default: dict = None) -> dict:
    """Load JSON file with graceful fallback.

    A missing file returns the default silently; a file that exists but does
    not parse is logged before falling back.
    """
    if default is None:
        default = {}
    try:
        content = path.read_bytes()
        return fast_json_loads(content)
    except (FileNotFoundError, IsADirectoryError):
        pass
    except msgspec.DecodeError as e:
        log_event("safe_load_json", "parse_error", {"path": str(path), "error": str(e)}, "warning")
    except OSError as e:
        log_event("safe_load_json", "read_error", {"path": str(path), "error": str(e)}, "warning")
    return default.copy()


def atomic_write_json(path: Path, data: dict) -> bool:
    """
    Write JSON atomically using temp file + rename.
    More robust than flock alone - survives crashes.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(msgspec.json.format(fast_json_dumps(data), indent=2))
            os.replace(temp_path, path)
            return True
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
    except (OSError, TypeError, msgspec.EncodeError) as e:
        log_event("atomic_write_json", "write_error", {"path": str(path), "error": str(e)}, "error")
        return False


def safe_stat(path: PathLike) -> os.stat_result | None:
    """Get file stats safely, return None on error."""
    try:
        return os.stat(path)
    except (FileNotFoundError, PermissionError, OSError, ValueError):
        return None


def expand_path(path: str) -> str:
    """Expand ~, environment variables, and normalize path."""
    expanded = os.path.expandvars(os.path.expanduser(path))
    return os.path.normpath(expanded)
