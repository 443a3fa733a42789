"""Schema pipeline run use-case service."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from schema_artifact_pipeline.change_detection import detect_changed_schemas
from schema_artifact_pipeline.configuration import (
    ConfigurationError,
    PipelineCredentials,
    PipelineSettings,
    StorageCredentials,
    StorageSettings,
    load_pipeline_credentials,
    load_settings,
)
from schema_artifact_pipeline.declaration_generation import (
    DeclarationGenerator,
    MessagesClient,
    create_message_client,
)
from schema_artifact_pipeline.external_commands import CommandRunner
from schema_artifact_pipeline.publishing import (
    ObjectStorePublisher,
    StorageClient,
    create_storage_client,
    publish_bundle,
    upload_raw_schemas,
)
from schema_artifact_pipeline.schema_bundling import BundlingError, bundle_schema, require_schema_id
from schema_artifact_pipeline.schema_registry import (
    GOVERNED_SCHEMAS,
    RegistryError,
    SchemaDescriptor,
    validate_registry,
)
from schema_artifact_pipeline.transport_errors import TransportError

from .run_contracts import PipelineState, RunOutcome, RunRequest, SchemaOutcome, SchemaStatus

logger = logging.getLogger(__name__)

MessageClientFactory = Callable[[str], MessagesClient]
StorageClientFactory = Callable[[StorageCredentials, StorageSettings], StorageClient]


class RunExecutionError(Exception):
    """Raised when a pipeline run cannot be completed."""

    def __init__(self, message: str, *, outcome: RunOutcome | None = None) -> None:
        super().__init__(message)
        self.outcome = outcome


class _StateTracker:
    """Records the state sequence of one run."""

    def __init__(self) -> None:
        self.history: list[PipelineState] = [PipelineState.INIT]

    @property
    def current(self) -> PipelineState:
        return self.history[-1]

    def advance(self, state: PipelineState) -> None:
        logger.debug("Pipeline state %s -> %s", self.current.value, state.value)
        self.history.append(state)


def execute_schema_pipeline_run(
    request: RunRequest,
    *,
    environ: Mapping[str, str] | None = None,
    descriptors: Sequence[SchemaDescriptor] | None = None,
    run_command: CommandRunner | None = None,
    message_client_factory: MessageClientFactory | None = None,
    storage_client_factory: StorageClientFactory | None = None,
) -> RunOutcome:
    """Execute one full change-driven schema pipeline run and return its outcome."""
    resolved_environ = os.environ if environ is None else environ
    resolved_message_client_factory = message_client_factory or create_message_client
    resolved_storage_client_factory = storage_client_factory or create_storage_client
    tracker = _StateTracker()

    settings, credentials = _load_run_configuration(request, resolved_environ)
    tracker.advance(PipelineState.ENV_VALIDATED)

    workspace = Path(request.workspace).resolve()
    changed = _detect_changes(
        descriptors if descriptors is not None else GOVERNED_SCHEMAS,
        workspace=workspace,
        settings=settings,
        run_command=run_command,
    )
    tracker.advance(PipelineState.CHANGES_DETECTED)
    if not changed:
        tracker.advance(PipelineState.DONE)
        return RunOutcome(
            final_state=PipelineState.DONE,
            state_history=tuple(tracker.history),
            raw_schema_keys=(),
            schema_outcomes=(),
        )

    _require_schema_ids(changed, workspace)
    publisher = ObjectStorePublisher(
        resolved_storage_client_factory(credentials.storage, settings.storage),
        bucket=credentials.storage.bucket_name,
        cache_control=settings.storage.cache_control,
    )
    raw_schema_keys = _upload_raw_schemas(publisher, workspace, settings)
    tracker.advance(PipelineState.RAW_UPLOADED)

    generator = DeclarationGenerator(
        resolved_message_client_factory(credentials.generation_api_key),
        workspace=workspace,
        settings=settings,
        run_command=run_command,
    )
    outcomes: list[SchemaOutcome] = []
    for descriptor in changed:
        tracker.advance(PipelineState.PROCESSING_SCHEMA)
        try:
            outcomes.append(
                _process_schema(
                    descriptor,
                    generator=generator,
                    publisher=publisher,
                    workspace=workspace,
                    settings=settings,
                )
            )
        except _SchemaProcessingError as exc:
            outcomes.append(SchemaOutcome.failed(descriptor, exc.cause))
            if not request.continue_on_error:
                tracker.advance(PipelineState.FAILED)
                raise RunExecutionError(
                    str(exc), outcome=_outcome(tracker, raw_schema_keys, outcomes)
                ) from exc.cause

    failed = [outcome for outcome in outcomes if outcome.status == SchemaStatus.FAILED]
    if failed:
        tracker.advance(PipelineState.FAILED)
        failed_inputs = ", ".join(outcome.descriptor.input_path for outcome in failed)
        raise RunExecutionError(
            f"{len(failed)} schema(s) failed: {failed_inputs}",
            outcome=_outcome(tracker, raw_schema_keys, outcomes),
        )

    tracker.advance(PipelineState.DONE)
    return _outcome(tracker, raw_schema_keys, outcomes)


class _SchemaProcessingError(Exception):
    """Wraps a failure with the schema and stage it happened in."""

    def __init__(self, descriptor: SchemaDescriptor, stage: str, cause: Exception) -> None:
        super().__init__(f"Failed to process {descriptor.input_path} during {stage}: {cause}")
        self.cause = cause


def _load_run_configuration(
    request: RunRequest, environ: Mapping[str, str]
) -> tuple[PipelineSettings, PipelineCredentials]:
    try:
        credentials = load_pipeline_credentials(environ)
        settings = load_settings(request.config_path)
    except ConfigurationError as exc:
        logger.error("Error: %s", exc)
        raise RunExecutionError(str(exc)) from exc
    git = replace(
        settings.git,
        base_ref=request.base_ref or settings.git.base_ref,
        head_ref=request.head_ref or settings.git.head_ref,
    )
    return replace(settings, git=git), credentials


def _detect_changes(
    descriptors: Sequence[SchemaDescriptor],
    *,
    workspace: Path,
    settings: PipelineSettings,
    run_command: CommandRunner | None,
) -> tuple[SchemaDescriptor, ...]:
    try:
        registry = validate_registry(descriptors)
        return detect_changed_schemas(
            registry,
            workspace=workspace,
            git=settings.git,
            paths=settings.paths,
            run_command=run_command,
        )
    except (RegistryError, TransportError) as exc:
        logger.error("Error: %s", exc)
        raise RunExecutionError(str(exc)) from exc


def _require_schema_ids(changed: Sequence[SchemaDescriptor], workspace: Path) -> None:
    """Fail before any upload when a changed schema lacks its stable identifier."""
    for descriptor in changed:
        try:
            require_schema_id(workspace / descriptor.input_path)
        except (ConfigurationError, BundlingError) as exc:
            logger.error("❌ Failed to process %s: %s", descriptor.input_path, exc)
            raise RunExecutionError(
                f"Failed to process {descriptor.input_path}: {exc}"
            ) from exc


def _upload_raw_schemas(
    publisher: ObjectStorePublisher, workspace: Path, settings: PipelineSettings
) -> tuple[str, ...]:
    try:
        return upload_raw_schemas(
            publisher, workspace / settings.paths.schema_dir, settings.paths
        )
    except (TransportError, OSError) as exc:
        logger.error("❌ Failed to upload raw schemas: %s", exc)
        raise RunExecutionError(f"Failed to upload raw schemas: {exc}") from exc


def _process_schema(
    descriptor: SchemaDescriptor,
    *,
    generator: DeclarationGenerator,
    publisher: ObjectStorePublisher,
    workspace: Path,
    settings: PipelineSettings,
) -> SchemaOutcome:
    logger.info("--- Processing %s ---", descriptor.input_path)
    stage = "declaration generation"
    try:
        declaration = generator.generate(descriptor)

        stage = "declaration write"
        declaration_path = workspace / descriptor.output_path
        declaration_path.parent.mkdir(parents=True, exist_ok=True)
        declaration_path.write_text(declaration.text, encoding="utf-8")
        logger.info("  ✓ Written types to %s", descriptor.output_path)

        stage = "bundling"
        logger.info("  Bundling schema...")
        bundle = bundle_schema(workspace / descriptor.input_path, paths=settings.paths)

        stage = "bundle upload"
        bundle_key = publish_bundle(publisher, descriptor, bundle)
        logger.info("  ✓ Uploaded bundled schema")
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("❌ Failed to process %s during %s: %s", descriptor.input_path, stage, exc)
        raise _SchemaProcessingError(descriptor, stage, exc) from exc
    return SchemaOutcome.processed(descriptor, declaration_path, bundle_key)


def _outcome(
    tracker: _StateTracker, raw_schema_keys: tuple[str, ...], outcomes: list[SchemaOutcome]
) -> RunOutcome:
    return RunOutcome(
        final_state=tracker.current,
        state_history=tuple(tracker.history),
        raw_schema_keys=raw_schema_keys,
        schema_outcomes=tuple(outcomes),
    )
