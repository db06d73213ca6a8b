"""Exceptions that end a run, each with the exit code the CLI reports."""


class AppimagifyError(Exception):
    """Base class for fatal errors."""

    exit_code = 1

    def __init__(self, message, exit_code=None):
        super().__init__(message)
        if exit_code:
            self.exit_code = exit_code


class UsageError(AppimagifyError):
    """Raised when fewer than the two required arguments are given."""

    exit_code = 1


class ToolMissingError(AppimagifyError):
    """Raised when a host tool the run cannot do without is not on PATH."""


class InstallError(AppimagifyError):
    """Raised when emerge fails; carries emerge's return code."""


class BinaryNotFoundError(AppimagifyError):
    """Raised when the requested binary is not in the materialized tree."""

    exit_code = 2

    def __init__(self, name, root):
        super().__init__(
            f"Could not find {name} under {root}; adjust the binary name or inspect the installed files."
        )
        self.name = name
        self.root = root


class BundleToolError(AppimagifyError):
    """Raised when appimagetool cannot be fetched or fails to build."""
