"""Domain-specific errors for gostub."""

from __future__ import annotations


class GoStubError(Exception):
    """Base error for gostub.

    `phase` names the pipeline step the error escaped from (load, resolve,
    collect, synthesize, render, write). The orchestrator fills it in when the
    raising code did not.
    """

    def __init__(self, message: str, *, phase: str | None = None):
        super().__init__(message)
        self.message = message
        self.phase = phase

    def __str__(self) -> str:
        if self.phase:
            return f"[{self.phase}] {self.message}"
        return self.message


class ConfigError(GoStubError):
    """Raised when generator options or environment overrides are invalid."""


class LoadError(GoStubError):
    """Raised when the input package cannot be loaded or type-checked."""


class NotFoundError(GoStubError):
    """Raised when no declaration with the requested name is an interface."""


class DuplicateError(GoStubError):
    """Raised when the requested interface is declared in more than one loaded package."""


class UnsupportedTypeError(GoStubError):
    """Raised when a type outside the supported TypeRef variants is encountered."""


class RenderError(GoStubError):
    """Raised when the synthesized file cannot be formatted."""


class OutputError(GoStubError):
    """Raised when the generated stub cannot be written."""
