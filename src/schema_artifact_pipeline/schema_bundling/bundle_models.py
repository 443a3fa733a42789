"""Schema bundling entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class BundledSchema:
    """Self-contained schema document derived from one governed schema."""

    schema_id: str
    document: Mapping[str, Any]
    text: str
    embedded_ids: tuple[str, ...]
