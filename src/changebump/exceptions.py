"""Exception hierarchy for changebump.

Every error raised by changebump derives from :class:`ChangebumpError` so
callers (mainly the CLI) can catch a single type. Malformed commit messages
are *not* exceptions: the parser returns them as ``ParseFailure`` values.
"""

from __future__ import annotations


class ChangebumpError(Exception):
    """Base class for all changebump errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(ChangebumpError):
    """Resolved configuration is invalid (bad regex, bad URL template, ...)."""


class TemplateError(ChangebumpError):
    """A changelog template failed to compile or render."""


class InvalidVersionError(ChangebumpError):
    """A string is not a valid semantic version."""


class GitError(ChangebumpError):
    """The git executable is missing or a git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}\n{self.stderr.strip()}"
        return self.message


class CheckFailedError(ChangebumpError):
    """One or more commits are not valid conventional commits."""

    def __init__(self, failed: int, total: int) -> None:
        super().__init__(f"{failed}/{total} failed")
        self.failed = failed
        self.total = total


class WizardStateError(ChangebumpError):
    """A commit wizard event arrived in a state that does not accept it."""
