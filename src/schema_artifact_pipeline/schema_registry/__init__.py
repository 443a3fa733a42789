"""Schema registry exports."""

from .descriptor_models import RemoteKeys, SchemaDescriptor
from .governed_schemas import GOVERNED_SCHEMAS, RegistryError, validate_registry

__all__ = [
    "GOVERNED_SCHEMAS",
    "RegistryError",
    "RemoteKeys",
    "SchemaDescriptor",
    "validate_registry",
]
