"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys

import click

from schema_artifact_pipeline.configuration import (
    DEFAULT_CONFIG_FILENAME,
    write_placeholder_configuration,
)
from schema_artifact_pipeline.declaration_generation import create_message_client
from schema_artifact_pipeline.external_commands import run_checked_command
from schema_artifact_pipeline.publishing import create_storage_client
from schema_artifact_pipeline.run_execution import (
    RunExecutionError,
    RunRequest,
    TypesSyncRequest,
    execute_declaration_sync,
    execute_schema_pipeline_run,
)
from schema_artifact_pipeline.schema_registry import GOVERNED_SCHEMAS

_PACKAGE_LOGGER = "schema_artifact_pipeline"


class CliError(Exception):
    """Custom CLI error."""


class _ConsoleHandler(logging.Handler):
    """Writes narration records to stderr through click."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:  # pylint: disable=broad-exception-caught
            self.handleError(record)


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(handler, _ConsoleHandler) for handler in package_logger.handlers):
        handler = _ConsoleHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)


_config_option = click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Optional YAML pipeline settings file",
)
_workspace_option = click.option(
    "--workspace",
    "workspace",
    required=False,
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, path_type=str),
    help="Repository root that holds the schema, types and prompts directories",
)
_verbose_option = click.option(
    "--verbose", is_flag=True, default=False, help="Log pipeline state transitions."
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="schema-artifact-pipeline")
def cli() -> None:
    """Change-driven schema declaration and bundle publisher."""


@cli.command(name="process")
@_config_option
@_workspace_option
@click.option("--base", "base_ref", required=False, help="Base revision (default HEAD^)")
@click.option("--head", "head_ref", required=False, help="Head revision (default HEAD)")
@click.option(
    "--keep-going",
    is_flag=True,
    default=False,
    help="Process the remaining schemas after a failure; the run still fails.",
)
@_verbose_option
def process(
    config_path: str | None,
    workspace: str,
    base_ref: str | None,
    head_ref: str | None,
    keep_going: bool,
    verbose: bool,
) -> None:
    """Generate declarations and publish bundles for schemas changed in the last commit."""
    _configure_logging(verbose)
    try:
        outcome = execute_schema_pipeline_run(
            RunRequest(
                workspace=workspace,
                config_path=config_path,
                base_ref=base_ref,
                head_ref=head_ref,
                continue_on_error=keep_going,
            ),
            run_command=run_checked_command,
            message_client_factory=create_message_client,
            storage_client_factory=create_storage_client,
        )
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    if outcome.no_changes:
        click.echo("No schema changes detected. Nothing to process.")
        return
    click.echo("✓ All changed schemas processed successfully")
    for schema_outcome in outcome.schema_outcomes:
        click.echo(f"  {schema_outcome.descriptor.input_path} -> {schema_outcome.bundle_key}")
    click.echo("  Types will be committed by the workflow")
    click.echo("  Types will be uploaded to R2 by the upload-types command")


@cli.command(name="upload-types")
@_config_option
@_workspace_option
@_verbose_option
def upload_types(config_path: str | None, workspace: str, verbose: bool) -> None:
    """Upload every declaration file in the types directory to storage."""
    _configure_logging(verbose)
    try:
        outcome = execute_declaration_sync(
            TypesSyncRequest(workspace=workspace, config_path=config_path),
            storage_client_factory=create_storage_client,
        )
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"✓ Successfully uploaded {len(outcome.uploaded_keys)} type file(s) to R2")


@cli.command(name="list-schemas")
def list_schemas() -> None:
    """Print the governed schema registry."""
    for descriptor in GOVERNED_SCHEMAS:
        click.echo(
            f"{descriptor.name}\t{descriptor.input_path}\t{descriptor.output_path}"
            f"\t{descriptor.remote_keys.bundled}"
        )


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML pipeline settings file to write",
)
def generate_config(output_path: str) -> None:
    """Generate a YAML pipeline settings file listing every default."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
