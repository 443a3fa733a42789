"""Version-control change detection service."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from schema_artifact_pipeline.configuration.runtime_settings import GitSettings, PathSettings
from schema_artifact_pipeline.external_commands import (
    CommandExecutionError,
    CommandRunner,
    run_checked_command,
)
from schema_artifact_pipeline.schema_registry import SchemaDescriptor
from schema_artifact_pipeline.transport_errors import TransportError

from .changed_file_models import ChangeSet

logger = logging.getLogger(__name__)


class ChangeDetectionError(TransportError):
    """Raised when the version-control delta cannot be queried."""


def build_change_set(raw_output: str, paths: PathSettings) -> ChangeSet:
    """Filter `git diff --name-only` output down to governed schema documents."""
    prefix = f"{paths.schema_dir}/"
    selected: list[str] = []
    for line in raw_output.splitlines():
        candidate = line.strip()
        if not candidate:
            continue
        if not candidate.endswith(paths.schema_extension):
            continue
        if not candidate.startswith(prefix):
            continue
        if paths.bundle_token in candidate:
            continue
        if candidate not in selected:
            selected.append(candidate)
    return ChangeSet(paths=tuple(selected))


def query_changed_files(
    *,
    workspace: Path,
    git: GitSettings,
    paths: PathSettings,
    run_command: CommandRunner | None = None,
) -> ChangeSet:
    """Ask git which governed files changed between the configured revisions."""
    command_runner = run_command or run_checked_command
    command = (
        "git",
        "diff",
        "--name-only",
        git.base_ref,
        git.head_ref,
        "--",
        f"{paths.schema_dir}/",
    )
    try:
        raw_output = command_runner(command, workspace, None)
    except CommandExecutionError as exc:
        raise ChangeDetectionError(f"Failed to query changed files: {exc}") from exc
    return build_change_set(raw_output, paths)


def select_changed_descriptors(
    descriptors: Iterable[SchemaDescriptor], change_set: ChangeSet
) -> tuple[SchemaDescriptor, ...]:
    """Return descriptors, in registry order, whose input file is in the change set."""
    return tuple(descriptor for descriptor in descriptors if descriptor.input_path in change_set)


def detect_changed_schemas(
    descriptors: Iterable[SchemaDescriptor],
    *,
    workspace: Path,
    git: GitSettings,
    paths: PathSettings,
    run_command: CommandRunner | None = None,
) -> tuple[SchemaDescriptor, ...]:
    """Detect which governed schemas changed in the compared revision range."""
    logger.info("Detecting changed schema files...")
    change_set = query_changed_files(
        workspace=workspace, git=git, paths=paths, run_command=run_command
    )
    logger.info("Changed files: %s", list(change_set.paths))

    changed = select_changed_descriptors(descriptors, change_set)
    logger.info(
        "Found %d schema(s) to process: %s",
        len(changed),
        [descriptor.input_path for descriptor in changed],
    )
    return changed
