"""Error kinds raised by the shrinker step."""
from __future__ import annotations

from pathlib import Path

from core.command_runner import CommandResult


class ShrinkerError(RuntimeError):
    """Base class for every failure surfaced by the step."""


class ConfigurationError(ShrinkerError):
    """Raised for a bad or missing rule, option or tool location."""


class ResolutionError(ShrinkerError):
    """Raised when a dependency cannot be mapped to a file."""


class FileSystemError(ShrinkerError):
    """Raised when creating, deleting, renaming, extracting or copying fails."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class ProcessError(ShrinkerError):
    """Raised when the external tool exits with a non-zero status."""

    def __init__(self, result: CommandResult):
        super().__init__(f"Obfuscation failed (result={result.returncode})")
        self.result = result
        self.exit_code = result.returncode


__all__ = [
    "ConfigurationError",
    "FileSystemError",
    "ProcessError",
    "ResolutionError",
    "ShrinkerError",
]
