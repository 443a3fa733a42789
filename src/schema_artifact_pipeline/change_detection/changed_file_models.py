"""Change detection entities."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChangeSet:
    """Ordered, de-duplicated schema paths touched between two revisions."""

    paths: tuple[str, ...]

    def __contains__(self, path: object) -> bool:
        return path in self.paths

    def __len__(self) -> int:
        return len(self.paths)
