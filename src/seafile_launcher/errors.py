"""Domain errors for the Seafile launcher."""

from typing import List, Optional


class LauncherError(RuntimeError):
    """Raised when an action cannot continue safely."""


class UsageError(LauncherError):
    """Raised for an invalid command-line invocation."""


class PrerequisiteError(LauncherError):
    """Raised when a required external tool is missing or too old."""


class PreconditionError(LauncherError):
    """Raised when the container is not in the state an action requires."""


class VersionMismatchError(LauncherError):
    """Raised when the stamped data version is not major-compatible."""


class MissingStateError(LauncherError):
    """Raised when the version stamp is absent, unreadable or malformed."""


class ExternalCommandError(LauncherError):
    """Raised when a delegated subprocess exits non-zero."""

    def __init__(self, message: str, returncode: int, cmd: Optional[List[str]] = None):
        super().__init__(message)
        self.returncode = returncode
        self.cmd = list(cmd or [])
