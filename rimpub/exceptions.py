"""Custom exceptions for rimpub."""

from pathlib import Path
from typing import Optional


class RimpubError(Exception):
    """Base exception for all rimpub errors."""

    pass


class ConfigError(RimpubError):
    """Raised when configuration is missing, invalid or cannot be parsed."""

    def __init__(self, message: str, key: Optional[str] = None):
        """Initialize config error.

        Args:
            message: Human-readable error message
            key: Configuration key involved, if any
        """
        super().__init__(message)
        self.key = key


class FilesystemError(RimpubError):
    """Raised when a filesystem operation needed to publish fails."""

    def __init__(self, message: str, path: Optional[Path] = None):
        """Initialize filesystem error.

        Args:
            message: Human-readable error message
            path: Path the failed operation was working on
        """
        super().__init__(message)
        self.path = path


class BuildError(RimpubError):
    """Raised when the external build fails to launch or exits non-zero."""

    def __init__(
        self,
        message: str,
        descriptor: Optional[Path] = None,
        returncode: Optional[int] = None,
        detail: str = "",
    ):
        """Initialize build error.

        Args:
            message: Human-readable error message
            descriptor: Solution file the build was run against
            returncode: Exit status of the build process (None if it never ran)
            detail: Captured error output of the build process
        """
        super().__init__(message)
        self.descriptor = descriptor
        self.returncode = returncode
        self.detail = detail

    def __str__(self) -> str:
        message = super().__str__()
        if self.detail:
            return f"{message}\n{self.detail}"
        return message


class WalkError(RimpubError):
    """Raised for a single entry that cannot be mirrored.

    The mirror never lets this escape; it is converted into a
    ``MirrorError`` record and the walk continues.
    """

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path
