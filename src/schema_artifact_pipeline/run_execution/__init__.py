"""Run execution domain exports."""

from .pipeline_run_use_case import RunExecutionError, execute_schema_pipeline_run
from .run_contracts import (
    PipelineState,
    RunOutcome,
    RunRequest,
    SchemaOutcome,
    SchemaStatus,
    TypesSyncOutcome,
    TypesSyncRequest,
)
from .types_sync_use_case import execute_declaration_sync

__all__ = [
    "PipelineState",
    "RunRequest",
    "RunOutcome",
    "SchemaOutcome",
    "SchemaStatus",
    "TypesSyncRequest",
    "TypesSyncOutcome",
    "RunExecutionError",
    "execute_schema_pipeline_run",
    "execute_declaration_sync",
]
