"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from schema_artifact_pipeline.schema_registry import SchemaDescriptor


class PipelineState(str, Enum):
    """States of one schema pipeline run."""

    INIT = "init"
    ENV_VALIDATED = "env_validated"
    CHANGES_DETECTED = "changes_detected"
    RAW_UPLOADED = "raw_uploaded"
    PROCESSING_SCHEMA = "processing_schema"
    DONE = "done"
    FAILED = "failed"


class SchemaStatus(str, Enum):
    """Processing outcome status of one changed schema."""

    PROCESSED = "processed"
    FAILED = "failed"


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one pipeline run."""

    workspace: str = "."
    config_path: str | None = None
    base_ref: str | None = None
    head_ref: str | None = None
    continue_on_error: bool = False


@dataclass(frozen=True)
class SchemaOutcome:
    """Outcome of processing one changed schema."""

    descriptor: SchemaDescriptor
    status: SchemaStatus
    declaration_path: Path | None
    bundle_key: str | None
    error_message: str | None

    @staticmethod
    def processed(
        descriptor: SchemaDescriptor, declaration_path: Path, bundle_key: str
    ) -> SchemaOutcome:
        return SchemaOutcome(
            descriptor=descriptor,
            status=SchemaStatus.PROCESSED,
            declaration_path=declaration_path,
            bundle_key=bundle_key,
            error_message=None,
        )

    @staticmethod
    def failed(descriptor: SchemaDescriptor, error: Exception) -> SchemaOutcome:
        return SchemaOutcome(
            descriptor=descriptor,
            status=SchemaStatus.FAILED,
            declaration_path=None,
            bundle_key=None,
            error_message=str(error),
        )


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one pipeline run."""

    final_state: PipelineState
    state_history: tuple[PipelineState, ...]
    raw_schema_keys: tuple[str, ...]
    schema_outcomes: tuple[SchemaOutcome, ...]

    @property
    def no_changes(self) -> bool:
        return PipelineState.RAW_UPLOADED not in self.state_history

    @property
    def failed_outcomes(self) -> tuple[SchemaOutcome, ...]:
        return tuple(
            outcome for outcome in self.schema_outcomes if outcome.status == SchemaStatus.FAILED
        )


@dataclass(frozen=True)
class TypesSyncRequest:
    """Input contract for mirroring declaration files to storage."""

    workspace: str = "."
    config_path: str | None = None


@dataclass(frozen=True)
class TypesSyncOutcome:
    """Output contract for one declaration mirror upload."""

    bucket: str
    uploaded_keys: tuple[str, ...]
