"""Exception hierarchy for the media processor and external commands."""

from __future__ import annotations

from typing import Iterable, Sequence


class MediaBackendError(RuntimeError):
    """Base exception raised by media processor implementations."""


def _coerce_command_parts(command: Sequence[str] | str) -> tuple[str, ...]:
    if isinstance(command, (str, bytes)):
        return (str(command),)
    if isinstance(command, Iterable):
        return tuple(str(part) for part in command)
    return (str(command),)


def _stderr_tail(stderr: str | bytes | None, limit: int = 400) -> str:
    if not stderr:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    text = stderr.strip()
    return text[-limit:]


class CommandExecutionError(MediaBackendError):
    """Raised when an external command (ffmpeg, ffprobe) does not succeed."""

    def __init__(
        self,
        command: Sequence[str] | str,
        *,
        returncode: int | None = None,
        stdout: str | bytes | None = None,
        stderr: str | bytes | None = None,
        cause: BaseException | None = None,
        timeout: bool = False,
    ) -> None:
        self.command = _coerce_command_parts(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.cause = cause
        self.timeout = timeout

        detail = []
        if returncode is not None:
            detail.append(f"return code {returncode}")
        if timeout:
            detail.append("timeout")
        if cause and not timeout:
            detail.append(cause.__class__.__name__)
        detail_str = f" ({', '.join(detail)})" if detail else ""
        message = f"Command execution failed{detail_str}: {' '.join(self.command)}"
        tail = _stderr_tail(stderr)
        if tail:
            message = f"{message}\n{tail}"
        super().__init__(message)

    @property
    def executable(self) -> str:
        return self.command[0] if self.command else ""


__all__ = ["CommandExecutionError", "MediaBackendError"]
