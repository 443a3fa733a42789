"""Schema bundling service.

A bundle is the target document with every externally referenced document copied
under its definitions keyword and every `$ref` rewritten to a local pointer, so the
output resolves without any other document.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from jsonschema.exceptions import SchemaError
from jsonschema.validators import Draft202012Validator, validator_for

from schema_artifact_pipeline.configuration.loader import ConfigurationError
from schema_artifact_pipeline.configuration.runtime_settings import PathSettings

from .bundle_models import BundledSchema
from .schema_universe import (
    DATA_KEYWORDS,
    SCHEMA_MAP_KEYWORDS,
    ReferenceResolutionError,
    SchemaRegistrationError,
    SchemaUniverse,
    escape_pointer_token,
    join_reference,
    normalize_uri,
)

logger = logging.getLogger(__name__)

_LEGACY_DIALECT_MARKERS = ("draft-04", "draft-06", "draft-07")


class BundlingError(Exception):
    """Raised when a schema cannot be bundled into a self-contained document."""


def read_schema_document(schema_path: Path | str) -> Mapping[str, Any]:
    """Read one schema document from disk."""
    path = Path(schema_path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise BundlingError(f"Cannot read schema at {path}: {exc}") from exc
    except ValueError as exc:
        raise BundlingError(f"Schema at {path} is not valid JSON: {exc}") from exc
    if not isinstance(document, Mapping):
        raise BundlingError(f"Schema at {path} must be a JSON object.")
    return document


def require_schema_id(schema_path: Path | str) -> str:
    """Return the `$id` of a schema document or fail as a configuration problem."""
    return _schema_id_of(read_schema_document(schema_path), schema_path)


def _schema_id_of(document: Mapping[str, Any], schema_path: Path | str) -> str:
    schema_id = document.get("$id")
    if not isinstance(schema_id, str) or not schema_id.strip():
        raise ConfigurationError(f"Schema at {schema_path} must have an $id property")
    return schema_id


def bundle_schema(
    schema_path: Path | str, *, paths: PathSettings | None = None
) -> BundledSchema:
    """Bundle one schema together with every sibling document it references."""
    path = Path(schema_path)
    path_settings = paths or PathSettings()

    universe = SchemaUniverse()
    try:
        universe.register_directory(
            path.parent,
            extension=path_settings.schema_extension,
            bundle_token=path_settings.bundle_token,
        )
    except OSError as exc:
        raise BundlingError(f"Cannot list schema directory {path.parent}: {exc}") from exc

    document = read_schema_document(path)
    _schema_id_of(document, path)
    try:
        root_id = universe.register(document)
    except SchemaRegistrationError as exc:
        raise BundlingError(f"Failed to bundle {path}: {exc}") from exc

    builder = _BundleBuilder(universe, root_id)
    try:
        bundled = builder.build()
    except ReferenceResolutionError as exc:
        raise BundlingError(f"Failed to bundle {path}: {exc}") from exc
    _check_bundle(bundled, path)

    logger.debug("Bundled %s with %d embedded document(s)", path, len(builder.embedded_ids))
    return BundledSchema(
        schema_id=root_id,
        document=bundled,
        text=json.dumps(bundled, indent=2, ensure_ascii=False),
        embedded_ids=builder.embedded_ids,
    )


class _BundleBuilder:
    """Copies the root document and the documents it reaches, rewriting references."""

    def __init__(self, universe: SchemaUniverse, root_id: str) -> None:
        self._universe = universe
        self._root_id = root_id
        root = universe.document(root_id)
        self._definitions_keyword = _definitions_keyword(root)
        existing = root.get(self._definitions_keyword) or {}
        if not isinstance(existing, Mapping):
            raise BundlingError(f"{self._definitions_keyword} of {root_id} must be an object.")
        self._taken_keys: set[str] = set(existing)
        self._embedded_keys: dict[str, str] = {}
        self._pending: list[str] = []

    @property
    def embedded_ids(self) -> tuple[str, ...]:
        return tuple(self._embedded_keys)

    def build(self) -> dict[str, Any]:
        root = self._rewrite(
            self._universe.document(self._root_id),
            base_uri=self._root_id,
            in_root_document=True,
            is_resource_root=True,
        )
        embedded: dict[str, Any] = {}
        while self._pending:
            document_id = self._pending.pop(0)
            embedded[self._embedded_keys[document_id]] = self._rewrite(
                self._universe.document(document_id),
                base_uri=document_id,
                in_root_document=False,
                is_resource_root=True,
            )
        if embedded:
            definitions = dict(root.get(self._definitions_keyword) or {})
            definitions.update(embedded)
            root[self._definitions_keyword] = definitions
        return root

    def _rewrite(
        self,
        node: Any,
        *,
        base_uri: str,
        in_root_document: bool,
        is_resource_root: bool = False,
        names_only: bool = False,
    ) -> Any:
        if isinstance(node, list):
            return [
                self._rewrite(item, base_uri=base_uri, in_root_document=in_root_document)
                for item in node
            ]
        if not isinstance(node, Mapping):
            return node
        if names_only:
            return {
                key: self._rewrite(child, base_uri=base_uri, in_root_document=in_root_document)
                for key, child in node.items()
            }

        keep_identity = in_root_document and is_resource_root
        nested_id = node.get("$id")
        if not is_resource_root and isinstance(nested_id, str) and nested_id.strip():
            base_uri = normalize_uri(join_reference(base_uri, nested_id))

        rewritten: dict[str, Any] = {}
        for key, value in node.items():
            if key in ("$id", "$schema") and isinstance(value, str) and not keep_identity:
                continue
            if key == "$anchor" and isinstance(value, str) and not in_root_document:
                continue
            if key == "$ref" and isinstance(value, str):
                rewritten[key] = self._local_reference(value, base_uri)
            elif key in DATA_KEYWORDS:
                rewritten[key] = value
            else:
                rewritten[key] = self._rewrite(
                    value,
                    base_uri=base_uri,
                    in_root_document=in_root_document,
                    names_only=key in SCHEMA_MAP_KEYWORDS,
                )
        return rewritten

    def _local_reference(self, reference: str, base_uri: str) -> str:
        location = self._universe.locate(reference, base_uri)
        if location.document_id == self._root_id:
            return f"#{location.pointer}"
        key = self._embed(location.document_id)
        return (
            f"#/{escape_pointer_token(self._definitions_keyword)}"
            f"/{escape_pointer_token(key)}{location.pointer}"
        )

    def _embed(self, document_id: str) -> str:
        key = self._embedded_keys.get(document_id)
        if key is not None:
            return key
        stem = _definition_key_stem(document_id)
        key = stem
        suffix = 2
        while key in self._taken_keys:
            key = f"{stem}-{suffix}"
            suffix += 1
        self._taken_keys.add(key)
        self._embedded_keys[document_id] = key
        self._pending.append(document_id)
        return key


def _definitions_keyword(document: Mapping[str, Any]) -> str:
    dialect = document.get("$schema")
    if isinstance(dialect, str) and any(marker in dialect for marker in _LEGACY_DIALECT_MARKERS):
        return "definitions"
    return "$defs"


def _definition_key_stem(document_id: str) -> str:
    parsed = urlparse(document_id)
    segments = [segment for segment in parsed.path.split("/") if segment]
    if segments:
        stem = segments[-1].split(".")[0]
        if stem:
            return stem
    return parsed.netloc or "schema"


def _check_bundle(document: Mapping[str, Any], path: Path) -> None:
    external = sorted(_external_references(document))
    if external:
        raise BundlingError(f"Bundle for {path} still references {', '.join(external)}")
    validator_cls = validator_for(document, default=Draft202012Validator)
    try:
        validator_cls.check_schema(document)
    except SchemaError as exc:
        raise BundlingError(f"Bundle for {path} is not a valid schema: {exc.message}") from exc


def _external_references(node: Any, *, names_only: bool = False) -> set[str]:
    found: set[str] = set()
    if isinstance(node, list):
        for item in node:
            found |= _external_references(item)
    elif isinstance(node, Mapping):
        for key, value in node.items():
            if names_only:
                found |= _external_references(value)
            elif key == "$ref" and isinstance(value, str):
                if not value.startswith("#"):
                    found.add(value)
            elif key not in DATA_KEYWORDS:
                found |= _external_references(value, names_only=key in SCHEMA_MAP_KEYWORDS)
    return found
