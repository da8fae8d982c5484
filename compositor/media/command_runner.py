"""Run ffmpeg/ffprobe style external commands with uniform logging and errors."""

from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from compositor import logging_manager as log_mgr

from .exceptions import CommandExecutionError

logger = log_mgr.get_logger().getChild("media.command")


@dataclass(slots=True)
class CommandResult:
    """Container describing a completed command execution."""

    command: tuple[str, ...]
    returncode: int
    stdout: str | bytes | None
    stderr: str | bytes | None
    duration: float


RetryPredicate = Callable[[CommandResult | None, BaseException | None], bool]
CommandRunner = Callable[..., CommandResult]


def _prepare_environment(env: Mapping[str, str] | None) -> dict[str, str]:
    merged = os.environ.copy()
    if env:
        merged.update({str(key): str(value) for key, value in env.items()})
    return merged


def _coerce_command(command: Sequence[str] | str) -> tuple[str, ...]:
    if isinstance(command, (str, bytes)):
        return (str(command),)
    return tuple(str(part) for part in command)


def run_command(
    command: Sequence[str] | str,
    *,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
    retries: int = 0,
    retry_check: RetryPredicate | None = None,
    cwd: str | None = None,
    text: bool = True,
    check: bool = True,
    logger_obj=logger,
    **kwargs: Any,
) -> CommandResult:
    """Execute ``command`` and return a :class:`CommandResult`.

    Output is always captured. A non-zero exit status raises
    :class:`CommandExecutionError` when ``check`` is true; timeouts and missing
    executables always raise. ``retries`` re-runs failed attempts, optionally
    filtered through ``retry_check``. Timeouts are never retried: a probe that
    hangs once is abandoned.
    """

    attempts = max(0, int(retries)) + 1
    parts = _coerce_command(command)

    run_kwargs: dict[str, Any] = dict(kwargs)
    run_kwargs.setdefault("cwd", cwd)
    run_kwargs.setdefault("timeout", timeout)
    run_kwargs.setdefault("env", _prepare_environment(env))
    run_kwargs.setdefault("stdout", subprocess.PIPE)
    run_kwargs.setdefault("stderr", subprocess.PIPE)
    run_kwargs["check"] = False
    run_kwargs["text"] = text

    for attempt in range(1, attempts + 1):
        start = time.monotonic()
        if logger_obj:
            logger_obj.debug(
                "Executing command (attempt %s/%s)",
                attempt,
                attempts,
                extra={"event": "media.command.execute", "command": parts},
            )
        try:
            completed = subprocess.run(list(parts), **run_kwargs)
        except subprocess.TimeoutExpired as exc:
            if logger_obj:
                logger_obj.warning(
                    "Command timed out after %.3fs",
                    time.monotonic() - start,
                    extra={"event": "media.command.timeout", "command": parts},
                )
            raise CommandExecutionError(
                parts, stdout=exc.stdout, stderr=exc.stderr, cause=exc, timeout=True
            ) from exc
        except FileNotFoundError as exc:
            if logger_obj:
                logger_obj.error(
                    "Command executable not found",
                    extra={"event": "media.command.not_found", "command": parts},
                )
            raise CommandExecutionError(parts, cause=exc) from exc
        except OSError as exc:  # pragma: no cover - permission errors and similar
            if logger_obj:
                logger_obj.error(
                    "Command execution failed due to OS error",
                    extra={"event": "media.command.os_error", "command": parts},
                )
            raise CommandExecutionError(parts, cause=exc) from exc

        result = CommandResult(
            command=parts,
            returncode=completed.returncode,
            stdout=getattr(completed, "stdout", None),
            stderr=getattr(completed, "stderr", None),
            duration=time.monotonic() - start,
        )
        if not check or completed.returncode == 0:
            if logger_obj:
                logger_obj.debug(
                    "Command completed in %.3fs",
                    result.duration,
                    extra={
                        "event": "media.command.success",
                        "command": parts,
                        "returncode": completed.returncode,
                    },
                )
            return result

        error = CommandExecutionError(
            parts,
            returncode=completed.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
        if logger_obj:
            logger_obj.warning(
                "Command returned non-zero status %s",
                completed.returncode,
                extra={
                    "event": "media.command.failed",
                    "command": parts,
                    "attempt": attempt,
                    "returncode": completed.returncode,
                },
            )
        should_retry = attempt < attempts and (
            retry_check(result, error) if retry_check else True
        )
        if not should_retry:
            raise error

    raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["CommandResult", "CommandRunner", "RetryPredicate", "run_command"]
