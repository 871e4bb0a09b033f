"""Exception types shared across commitguard modules."""

from __future__ import annotations


class CommitGuardError(Exception):
    """Base class for errors raised by commitguard."""


class ConfigError(CommitGuardError):
    """Raised when a configuration file cannot be parsed."""


class GitError(CommitGuardError):
    """A git invocation exited non-zero or could not be started."""

    def __init__(self, args: list[str], returncode: int, stderr: str = ""):
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr.strip()
        command = " ".join(["git", *args])
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"`{command}` failed with exit code {returncode}{detail}")
