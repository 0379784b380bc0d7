"""Exception hierarchy for promptline.

    PromptlineError (base)
    ├── ConfigurationError
    └── StartupError

Only startup failures end the process. Failures while a reply is streaming
are turned into stream events and shown inline in the transcript.
"""

from __future__ import annotations


class PromptlineError(Exception):
    """Base class for promptline errors.

    Attributes:
        message: Human readable description
        code: Optional short error code (e.g. "CONFIG")
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, code={self.code!r})"


class ConfigurationError(PromptlineError):
    """Required configuration is missing or invalid."""


class StartupError(PromptlineError):
    """The client could not be brought up (log file, remote client)."""
