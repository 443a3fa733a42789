"""Schema to draft declaration conversion through the json2ts CLI."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from schema_artifact_pipeline.external_commands import (
    CommandExecutionError,
    CommandRunner,
    run_checked_command,
)

from .generation_models import GenerationError

# External references declared inline, no const enums, no implicit
# additionalProperties, min/max item hints ignored, no banner comment.
CONVERTER_OPTIONS = (
    "--declareExternallyReferenced",
    "--no-enableConstEnums",
    "--no-additionalProperties",
    "--ignoreMinAndMaxItems",
    "--bannerComment=",
)


def convert_schema_to_draft(
    schema_path: Path,
    *,
    converter_command: Sequence[str],
    run_command: CommandRunner | None = None,
) -> str:
    """Run the converter next to the schema so relative references resolve."""
    command_runner = run_command or run_checked_command
    command = (*converter_command, schema_path.name, *CONVERTER_OPTIONS)
    try:
        return command_runner(command, schema_path.parent, None)
    except CommandExecutionError as exc:
        raise GenerationError(f"Declaration conversion failed for {schema_path}: {exc}") from exc
