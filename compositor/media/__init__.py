"""Utilities shared by the media processor and probers."""

from .command_runner import CommandResult, run_command
from .exceptions import CommandExecutionError, MediaBackendError

__all__ = [
    "CommandExecutionError",
    "CommandResult",
    "MediaBackendError",
    "run_command",
]
