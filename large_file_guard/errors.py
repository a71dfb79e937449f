"""Exception types raised by large_file_guard."""


class LargeFileGuardError(Exception):
    """Base class for all large_file_guard errors."""


class AbortedByUser(LargeFileGuardError):
    """The open was cancelled: neither a normal open nor the viewer was chosen."""

    def __init__(self, path: str | None = None):
        self.path = path
        super().__init__(f"Aborted opening {path}" if path else "Aborted")


class OpenSubstituted(LargeFileGuardError):
    """The original open was replaced by the large-file viewer."""

    def __init__(self, path: str, result=None):
        self.path = path
        self.result = result
        super().__init__(f"Opened {path} with the large-file viewer")


class InvalidPromptInput(LargeFileGuardError):
    """Key read by the prompt is not a recognized choice. Never leaves the prompt loop."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unrecognized choice: {key!r}")


class ConfigError(LargeFileGuardError):
    """Configuration value rejected at load time."""
