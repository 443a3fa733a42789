"""Raw schema, bundle and declaration upload helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from schema_artifact_pipeline.configuration.runtime_settings import PathSettings
from schema_artifact_pipeline.schema_bundling import BundledSchema
from schema_artifact_pipeline.schema_registry import SchemaDescriptor

from .object_store import DECLARATION_CONTENT_TYPE, SCHEMA_CONTENT_TYPE, ObjectStorePublisher

logger = logging.getLogger(__name__)

DECLARATION_KEY_PREFIX = "types"


def list_raw_schema_files(schema_dir: Path, paths: PathSettings) -> list[Path]:
    """Return every raw schema document on disk, sorted by file name."""
    if not schema_dir.is_dir():
        return []
    return sorted(
        candidate
        for candidate in schema_dir.iterdir()
        if candidate.is_file()
        and candidate.name.endswith(paths.schema_extension)
        and paths.bundle_token not in candidate.name
    )


def upload_raw_schemas(
    publisher: ObjectStorePublisher, schema_dir: Path, paths: PathSettings
) -> tuple[str, ...]:
    """Mirror every raw schema file to the bucket root, keyed by file name."""
    logger.info("--- Uploading raw schemas to R2 ---")
    keys: list[str] = []
    for schema_file in list_raw_schema_files(schema_dir, paths):
        publisher.put(schema_file.name, schema_file.read_bytes(), SCHEMA_CONTENT_TYPE)
        keys.append(schema_file.name)
    logger.info("  ✓ Uploaded %d raw schema files", len(keys))
    return tuple(keys)


def publish_bundle(
    publisher: ObjectStorePublisher, descriptor: SchemaDescriptor, bundle: BundledSchema
) -> str:
    """Publish one bundled schema under the descriptor's bundled key."""
    key = descriptor.remote_keys.bundled
    publisher.put(key, bundle.text, SCHEMA_CONTENT_TYPE)
    return key


def list_declaration_files(types_dir: Path, paths: PathSettings) -> list[Path]:
    """Return every declaration file in the types directory, sorted by file name."""
    if not types_dir.is_dir():
        return []
    return sorted(
        candidate
        for candidate in types_dir.iterdir()
        if candidate.is_file() and candidate.name.endswith(paths.declaration_extension)
    )


def upload_declarations(
    publisher: ObjectStorePublisher,
    types_dir: Path,
    paths: PathSettings,
    descriptors: Iterable[SchemaDescriptor] = (),
) -> tuple[str, ...]:
    """Mirror every declaration file to storage.

    A file produced for a registered schema goes to that descriptor's `types` key;
    any other declaration file goes to `types/<file>`.
    """
    registered_keys = {
        Path(descriptor.output_path).name: descriptor.remote_keys.types
        for descriptor in descriptors
    }
    declaration_files = list_declaration_files(types_dir, paths)
    logger.info("Found %d type file(s) to upload", len(declaration_files))
    keys: list[str] = []
    for declaration_file in declaration_files:
        key = registered_keys.get(
            declaration_file.name, f"{DECLARATION_KEY_PREFIX}/{declaration_file.name}"
        )
        publisher.put(key, declaration_file.read_bytes(), DECLARATION_CONTENT_TYPE)
        keys.append(key)
    return tuple(keys)
