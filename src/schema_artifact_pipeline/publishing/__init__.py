"""Publishing exports."""

from .artifact_uploads import (
    list_declaration_files,
    list_raw_schema_files,
    publish_bundle,
    upload_declarations,
    upload_raw_schemas,
)
from .object_store import (
    DECLARATION_CONTENT_TYPE,
    SCHEMA_CONTENT_TYPE,
    ObjectStorePublisher,
    PublishError,
    StorageClient,
    create_storage_client,
)

__all__ = [
    "DECLARATION_CONTENT_TYPE",
    "SCHEMA_CONTENT_TYPE",
    "ObjectStorePublisher",
    "PublishError",
    "StorageClient",
    "create_storage_client",
    "list_declaration_files",
    "list_raw_schema_files",
    "publish_bundle",
    "upload_declarations",
    "upload_raw_schemas",
]
