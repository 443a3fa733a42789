"""Static registry of governed schema families."""

from __future__ import annotations

from collections.abc import Iterable

from .descriptor_models import RemoteKeys, SchemaDescriptor


def _descriptor(name: str) -> SchemaDescriptor:
    return SchemaDescriptor(
        name=name,
        input_path=f"schema/{name}.json",
        output_path=f"types/{name}.d.ts",
        prompt_path=f"prompts/{name}.prompt.txt",
        remote_keys=RemoteKeys(
            bundled=f"schema-bundle/{name}.bundled.json",
            types=f"types/{name}.d.ts",
        ),
    )


# One entry per governed schema. Nothing is discovered from disk.
GOVERNED_SCHEMAS: tuple[SchemaDescriptor, ...] = (
    _descriptor("model"),
    _descriptor("content"),
    _descriptor("notification"),
    _descriptor("setting"),
    _descriptor("webhook"),
)


class RegistryError(Exception):
    """Raised when the descriptor registry is inconsistent."""


def validate_registry(descriptors: Iterable[SchemaDescriptor]) -> tuple[SchemaDescriptor, ...]:
    """Return descriptors unchanged after checking that identities and keys are unique."""
    validated = tuple(descriptors)
    seen_inputs: set[str] = set()
    seen_keys: set[str] = set()
    for descriptor in validated:
        if descriptor.input_path in seen_inputs:
            raise RegistryError(f"Duplicate schema input path: {descriptor.input_path}")
        seen_inputs.add(descriptor.input_path)
        for key in (descriptor.remote_keys.bundled, descriptor.remote_keys.types):
            if key in seen_keys:
                raise RegistryError(f"Duplicate remote key: {key}")
            seen_keys.add(key)
    return validated
