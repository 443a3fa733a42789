"""Change detection exports."""

from .changed_file_models import ChangeSet
from .changed_schema_detector import (
    ChangeDetectionError,
    build_change_set,
    detect_changed_schemas,
    query_changed_files,
    select_changed_descriptors,
)

__all__ = [
    "ChangeSet",
    "ChangeDetectionError",
    "build_change_set",
    "detect_changed_schemas",
    "query_changed_files",
    "select_changed_descriptors",
]
