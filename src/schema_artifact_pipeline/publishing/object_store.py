"""Object storage publisher service."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from schema_artifact_pipeline.configuration.runtime_settings import (
    StorageCredentials,
    StorageSettings,
)
from schema_artifact_pipeline.transport_errors import TransportError

logger = logging.getLogger(__name__)

SCHEMA_CONTENT_TYPE = "application/json"
DECLARATION_CONTENT_TYPE = "application/typescript"


class PublishError(TransportError):
    """Raised when an object cannot be written to storage."""


class StorageClient(Protocol):  # pylint: disable=too-few-public-methods
    """Subset of the S3 client API used for publishing."""

    def put_object(self, **kwargs: Any) -> Any: ...


def create_storage_client(
    credentials: StorageCredentials, settings: StorageSettings
) -> StorageClient:
    """Build an S3 client for the configured endpoint with retries disabled."""
    return boto3.client(
        "s3",
        region_name=settings.region,
        endpoint_url=credentials.endpoint_url(settings),
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
        config=Config(retries={"total_max_attempts": 1, "mode": "standard"}),
    )


class ObjectStorePublisher:  # pylint: disable=too-few-public-methods
    """Unconditional put of one object per call into a single bucket."""

    def __init__(self, client: StorageClient, *, bucket: str, cache_control: str) -> None:
        self._client = client
        self._bucket = bucket
        self._cache_control = cache_control

    def put(self, key: str, content: str | bytes, content_type: str) -> None:
        logger.info("  Uploading to R2: %s", key)
        body = content.encode("utf-8") if isinstance(content, str) else content
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                CacheControl=self._cache_control,
            )
        except (BotoCoreError, ClientError) as exc:
            raise PublishError(f"Failed to upload {key}: {exc}") from exc
