"""Schema bundling exports."""

from .bundle_models import BundledSchema
from .schema_bundler import BundlingError, bundle_schema, read_schema_document, require_schema_id
from .schema_universe import SchemaUniverse

__all__ = [
    "BundledSchema",
    "BundlingError",
    "SchemaUniverse",
    "bundle_schema",
    "read_schema_document",
    "require_schema_id",
]
