"""Declaration pretty-printing through the prettier CLI."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from schema_artifact_pipeline.external_commands import (
    CommandExecutionError,
    CommandRunner,
    run_checked_command,
)

from .generation_models import FormattingProfile, GenerationError

_STDIN_FILEPATH = "declaration.d.ts"


def formatter_arguments(profile: FormattingProfile) -> tuple[str, ...]:
    """Translate a formatting profile into explicit prettier flags."""
    arguments = [
        "--no-config",
        "--stdin-filepath",
        _STDIN_FILEPATH,
        "--parser",
        profile.parser,
        "--trailing-comma",
        profile.trailing_comma,
        "--tab-width",
        str(profile.tab_width),
    ]
    if not profile.semicolons:
        arguments.append("--no-semi")
    if profile.single_quote:
        arguments.append("--single-quote")
    return tuple(arguments)


def format_declaration(
    text: str,
    *,
    formatter_command: Sequence[str],
    cwd: Path,
    profile: FormattingProfile | None = None,
    run_command: CommandRunner | None = None,
) -> str:
    """Pretty-print declaration text and return the formatted output."""
    command_runner = run_command or run_checked_command
    command = (*formatter_command, *formatter_arguments(profile or FormattingProfile()))
    try:
        return command_runner(command, cwd, text)
    except CommandExecutionError as exc:
        raise GenerationError(f"Declaration formatting failed: {exc}") from exc
