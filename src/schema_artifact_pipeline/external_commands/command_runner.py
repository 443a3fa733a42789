"""Subprocess runner for git, the declaration converter and the formatter."""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

CommandRunner = Callable[[Sequence[str], Path, str | None], str]


class CommandExecutionError(Exception):
    """Raised when an external command is missing or exits with a failure."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


def run_checked_command(command: Sequence[str], cwd: Path, stdin_text: str | None = None) -> str:
    """Run one command in `cwd`, feed optional stdin text, and return its stdout."""
    command_text = shlex.join(command)
    try:
        completed = subprocess.run(
            list(command),
            cwd=cwd,
            input=stdin_text,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
        )
    except FileNotFoundError as exc:
        raise CommandExecutionError(f"Command not found: {command_text}") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        message = f"Command failed with exit code {exc.returncode}: {command_text}"
        if stderr:
            message = f"{message}\n{stderr}"
        raise CommandExecutionError(message, stderr=stderr) from exc
    return completed.stdout
