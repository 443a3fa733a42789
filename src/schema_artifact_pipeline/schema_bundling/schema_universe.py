"""Registry of sibling schema documents addressable by their `$id`."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote, urldefrag, urljoin

from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012

logger = logging.getLogger(__name__)

# Keywords whose values are instance data, never subschemas.
DATA_KEYWORDS = frozenset({"const", "default", "enum", "examples"})
# Keywords whose values map arbitrary names to subschemas.
SCHEMA_MAP_KEYWORDS = frozenset(
    {"$defs", "definitions", "dependentSchemas", "patternProperties", "properties"}
)


class SchemaRegistrationError(Exception):
    """Raised when a document cannot join the universe."""


class ReferenceResolutionError(Exception):
    """Raised when a `$ref` does not point at a registered location."""


@dataclass(frozen=True)
class SchemaLocation:
    """A node addressed as (registered document, JSON pointer fragment)."""

    document_id: str
    pointer: str


def normalize_uri(uri: str) -> str:
    """Drop an empty trailing fragment so `a.json#` and `a.json` are one resource."""
    return urldefrag(uri.strip()).url


def join_reference(base_uri: str, reference: str) -> str:
    """Resolve `reference` against `base_uri`, keeping fragment-only references on the base."""
    if reference.startswith("#"):
        return normalize_uri(base_uri) + reference
    return urljoin(base_uri, reference)


def escape_pointer_token(token: str) -> str:
    escaped = token.replace("~", "~0").replace("/", "~1")
    return quote(escaped, safe="~$!&'()*+,;=:@-._")


class SchemaUniverse:
    """Every schema document reachable by identifier during one bundling call."""

    def __init__(self) -> None:
        self._registry: Registry = Registry()
        self._resolver = None
        self._documents: dict[str, Mapping[str, Any]] = {}
        self._locations: dict[str, SchemaLocation] = {}
        self._anchors: dict[tuple[str, str], SchemaLocation] = {}

    def register(self, document: Any) -> str:
        """Register one document under its `$id` and return the normalized identifier."""
        if not isinstance(document, Mapping):
            raise SchemaRegistrationError("Schema document root must be an object.")
        raw_id = document.get("$id")
        if not isinstance(raw_id, str) or not raw_id.strip():
            raise SchemaRegistrationError("Schema document does not declare an $id.")

        schema_id = normalize_uri(raw_id)
        # Crawling now surfaces malformed subresources before any lookup.
        try:
            resource = Resource.from_contents(document, default_specification=DRAFT202012)
            registry = self._registry.with_resource(schema_id, resource).crawl()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise SchemaRegistrationError(
                f"Schema document {schema_id} cannot be registered: {exc}"
            ) from exc
        self._registry = registry
        self._resolver = None
        self._documents[schema_id] = document
        self._index_document(document, schema_id)
        return schema_id

    def register_directory(
        self, directory: Path, *, extension: str, bundle_token: str
    ) -> tuple[str, ...]:
        """Register every sibling document with an `$id`; unusable files are skipped."""
        registered: list[str] = []
        for candidate in sorted(directory.iterdir()):
            if not candidate.is_file():
                continue
            if not candidate.name.endswith(extension) or bundle_token in candidate.name:
                continue
            try:
                document = json.loads(candidate.read_text(encoding="utf-8"))
                registered.append(self.register(document))
            except (OSError, ValueError, SchemaRegistrationError) as exc:
                logger.debug("Skipping %s during registration: %s", candidate, exc)
        return tuple(registered)

    def document(self, schema_id: str) -> Mapping[str, Any]:
        return self._documents[schema_id]

    def locate(self, reference: str, base_uri: str) -> SchemaLocation:
        """Resolve a `$ref` seen under `base_uri` to a location inside a registered document."""
        target = join_reference(base_uri, reference)
        try:
            self._get_resolver().lookup(target)
        except Unresolvable as exc:
            raise ReferenceResolutionError(f"Unresolvable reference {reference!r}: {exc}") from exc

        resource_uri, fragment = urldefrag(target)
        location = self._locations.get(resource_uri)
        if location is None:
            raise ReferenceResolutionError(
                f"Reference {reference!r} points outside the registered documents."
            )
        if not fragment or fragment.startswith("/"):
            return SchemaLocation(location.document_id, location.pointer + fragment)
        anchored = self._anchors.get((resource_uri, fragment))
        if anchored is None:
            raise ReferenceResolutionError(f"Unknown anchor in reference {reference!r}.")
        return anchored

    def _get_resolver(self):
        if self._resolver is None:
            self._resolver = self._registry.resolver()
        return self._resolver

    def _index_document(self, document: Mapping[str, Any], schema_id: str) -> None:
        self._locations[schema_id] = SchemaLocation(schema_id, "")
        self._index_node(document, schema_id=schema_id, base_uri=schema_id, pointer="")

    def _index_node(
        self,
        node: Any,
        *,
        schema_id: str,
        base_uri: str,
        pointer: str,
        names_only: bool = False,
    ) -> None:
        if isinstance(node, list):
            for index, item in enumerate(node):
                self._index_node(
                    item, schema_id=schema_id, base_uri=base_uri, pointer=f"{pointer}/{index}"
                )
            return
        if not isinstance(node, Mapping):
            return

        if not names_only:
            nested_id = node.get("$id")
            if pointer and isinstance(nested_id, str) and nested_id.strip():
                base_uri = normalize_uri(join_reference(base_uri, nested_id))
                self._locations[base_uri] = SchemaLocation(schema_id, pointer)
            anchor = node.get("$anchor")
            if isinstance(anchor, str):
                self._anchors[(base_uri, anchor)] = SchemaLocation(schema_id, pointer)

        for key, child in node.items():
            if not names_only and key in DATA_KEYWORDS:
                continue
            self._index_node(
                child,
                schema_id=schema_id,
                base_uri=base_uri,
                pointer=f"{pointer}/{escape_pointer_token(str(key))}",
                names_only=not names_only and key in SCHEMA_MAP_KEYWORDS,
            )
