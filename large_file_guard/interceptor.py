"""Host open-pipeline glue.

``OpenInterceptor.open`` sits in front of the host's file-open routine: it
looks up the file size, asks the policy, and either calls the normal opener,
hands the file to the large-file viewer, or cancels.

Cancellation is signalled with exceptions so the host's own open never runs:
    OpenSubstituted  the viewer was opened instead
    AbortedByUser    nothing was opened

``open_in_viewer`` is the directory-listing shortcut: it always uses the
viewer and never consults the policy.
"""
from dataclasses import replace
from functools import wraps
from typing import Callable, TypeVar

from large_file_guard.config import Defaults
from large_file_guard.errors import AbortedByUser, OpenSubstituted
from large_file_guard.guard_utils import expand_path, log_event, safe_stat
from large_file_guard.modes import find_remote_prefix
from large_file_guard.policy import Action, FileDescriptor, InterceptionPolicy

T = TypeVar("T")


def describe_file(path: str, declared_mode: str = None) -> FileDescriptor:
    """Build a descriptor for ``path`` from the filesystem.

    Remote paths and missing files carry no size, so they are never
    intercepted and the normal opener reports any error itself. A name that
    exists locally is local even when it reads like a remote prefix
    ("/data:2024/big.log").
    """
    st = safe_stat(expand_path(path))
    if st is not None:
        return FileDescriptor(path=path, size_bytes=st.st_size, declared_mode=declared_mode)
    return FileDescriptor(
        path=path,
        remote_prefix=find_remote_prefix(path),
        declared_mode=declared_mode,
    )


class OpenInterceptor:
    """Explicit interceptor for a host file-open routine."""

    def __init__(self, policy: InterceptionPolicy, substitute_opener: Callable[[str], object]):
        self.policy = policy
        self.substitute_opener = substitute_opener

    def open(self, path: str, opener: Callable[[str], T],
             operation: str = Defaults.OPERATION, declared_mode: str = None,
             size_bytes: int = None) -> T:
        """Open ``path`` with ``opener`` unless the policy says otherwise.

        Args:
            path: File to open
            opener: The host's normal open routine
            operation: Name of the attempted operation (shown in the prompt)
            declared_mode: Mode already chosen by the caller, if any
            size_bytes: Size if the caller already knows it; looked up otherwise

        Returns:
            Whatever ``opener`` returns

        Raises:
            OpenSubstituted: the file was opened with the large-file viewer;
                its ``result`` is what the viewer returned
            AbortedByUser: the user cancelled the open
        """
        descriptor = describe_file(path, declared_mode)
        if size_bytes is not None:
            descriptor = replace(descriptor, size_bytes=size_bytes)

        action = self.policy.decide(descriptor, operation)

        if action is Action.SUBSTITUTE:
            log_event("interceptor", "substituted", {"file": path, "operation": operation})
            result = self.substitute_opener(path)
            raise OpenSubstituted(path, result)

        if action is Action.ABORT:
            log_event("interceptor", "aborted", {"file": path, "operation": operation})
            raise AbortedByUser(path)

        return opener(path)

    def wrap(self, opener: Callable[[str], T], operation: str = Defaults.OPERATION) -> Callable[[str], T]:
        """Intercepting version of ``opener``."""
        @wraps(opener)
        def intercepted(path: str) -> T:
            return self.open(path, opener, operation)
        return intercepted


def open_in_viewer(path: str, substitute_opener: Callable[[str], T]) -> T:
    """Listing shortcut: open the file under the cursor with the viewer, unconditionally."""
    log_event("interceptor", "listing_open", {"file": path})
    return substitute_opener(path)
