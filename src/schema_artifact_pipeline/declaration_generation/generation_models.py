"""Declaration generation entities."""

from __future__ import annotations

from dataclasses import dataclass

from schema_artifact_pipeline.schema_registry import SchemaDescriptor


class GenerationError(Exception):
    """Raised when a declaration cannot be produced for a schema."""


@dataclass(frozen=True)
class GeneratedDeclaration:
    """Finished declaration text for one governed schema."""

    descriptor: SchemaDescriptor
    text: str


@dataclass(frozen=True)
class FormattingProfile:
    """Pretty-printer style applied to every generated declaration."""

    parser: str = "typescript"
    semicolons: bool = True
    single_quote: bool = False
    trailing_comma: str = "es5"
    tab_width: int = 2
