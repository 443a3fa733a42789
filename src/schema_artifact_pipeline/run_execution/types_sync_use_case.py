"""Declaration mirror upload use-case service."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from schema_artifact_pipeline.configuration import (
    ConfigurationError,
    load_settings,
    load_storage_credentials,
)
from schema_artifact_pipeline.publishing import (
    ObjectStorePublisher,
    create_storage_client,
    upload_declarations,
)
from schema_artifact_pipeline.schema_registry import GOVERNED_SCHEMAS, SchemaDescriptor
from schema_artifact_pipeline.transport_errors import TransportError

from .pipeline_run_use_case import RunExecutionError, StorageClientFactory
from .run_contracts import TypesSyncOutcome, TypesSyncRequest

logger = logging.getLogger(__name__)


def execute_declaration_sync(
    request: TypesSyncRequest,
    *,
    environ: Mapping[str, str] | None = None,
    descriptors: Sequence[SchemaDescriptor] | None = None,
    storage_client_factory: StorageClientFactory | None = None,
) -> TypesSyncOutcome:
    """Upload every declaration file in the types directory to storage."""
    resolved_environ = os.environ if environ is None else environ
    resolved_storage_client_factory = storage_client_factory or create_storage_client
    try:
        credentials = load_storage_credentials(resolved_environ)
        settings = load_settings(request.config_path)
    except ConfigurationError as exc:
        logger.error("Error: %s", exc)
        raise RunExecutionError(str(exc)) from exc

    types_dir = Path(request.workspace).resolve() / settings.paths.types_dir
    logger.info("Uploading types to R2 bucket: %s", credentials.bucket_name)
    logger.info("Reading type files from %s/", settings.paths.types_dir)
    publisher = ObjectStorePublisher(
        resolved_storage_client_factory(credentials, settings.storage),
        bucket=credentials.bucket_name,
        cache_control=settings.storage.cache_control,
    )
    try:
        keys = upload_declarations(
            publisher,
            types_dir,
            settings.paths,
            descriptors if descriptors is not None else GOVERNED_SCHEMAS,
        )
    except (TransportError, OSError) as exc:
        logger.error("Failed to upload types: %s", exc)
        raise RunExecutionError(f"Failed to upload types: {exc}") from exc
    return TypesSyncOutcome(bucket=credentials.bucket_name, uploaded_keys=keys)
