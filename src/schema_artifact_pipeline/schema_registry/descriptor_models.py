"""Schema descriptor entities."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RemoteKeys:
    """Object storage keys for the artifacts derived from one schema."""

    bundled: str
    types: str


@dataclass(frozen=True)
class SchemaDescriptor:
    """Static record binding one governed schema to its outputs and prompt.

    Paths are relative to the workspace root. Two descriptors are the same schema
    when their `input_path` matches.
    """

    name: str
    input_path: str
    output_path: str
    prompt_path: str
    remote_keys: RemoteKeys
