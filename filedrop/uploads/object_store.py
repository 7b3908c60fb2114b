"""Object store gateway: S3 implementation and an in-memory stand-in."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from filedrop.config.runtime_config import UploadConfig
from filedrop.uploads.errors import GrantIssuanceFailed, StorageWriteFailed
from filedrop.uploads.models import UploadGrant

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class ObjectStoreGateway(Protocol):
    """Abstract interface for blob storage and signed access grants."""

    def put(self, key: str, content: bytes, content_type: str) -> None:
        """Store bytes under key. Raises StorageWriteFailed."""
        ...

    def get(self, key: str) -> Optional[bytes]:
        """Return stored bytes, or None when the key does not exist."""
        ...

    def issue_download_grant(self, key: str, ttl_seconds: int) -> str:
        """Signed GET URL valid for ttl_seconds. Raises GrantIssuanceFailed."""
        ...

    def issue_upload_grant(self, key: str, ttl_seconds: int, fields: Dict[str, str]) -> UploadGrant:
        """Signed POST form for a browser upload. Raises GrantIssuanceFailed."""
        ...


class S3ObjectStoreGateway:
    """S3-backed gateway. One long-lived client is injected and reused."""

    def __init__(self, client: Any, config: UploadConfig) -> None:
        self._client = client
        self.bucket_name = config.bucket_name
        self.max_upload_bytes = config.max_upload_bytes

    def put(self, key: str, content: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 put_object failed for %s: %s", key, exc, exc_info=True)
            raise StorageWriteFailed() from exc

    def get(self, key: str) -> Optional[bytes]:
        try:
            response = self._client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _MISSING_KEY_CODES:
                return None
            raise
        return response["Body"].read()

    def issue_download_grant(self, key: str, ttl_seconds: int) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 presigned GET generation failed for %s: %s", key, exc, exc_info=True)
            raise GrantIssuanceFailed() from exc

    def issue_upload_grant(self, key: str, ttl_seconds: int, fields: Dict[str, str]) -> UploadGrant:
        conditions: list = [
            {"bucket": self.bucket_name},
            {"key": key},
            ["content-length-range", 1, self.max_upload_bytes],
        ]
        conditions.extend({name: value} for name, value in fields.items())
        try:
            response = self._client.generate_presigned_post(
                Bucket=self.bucket_name,
                Key=key,
                Fields=dict(fields),
                Conditions=conditions,
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("S3 presigned POST generation failed for %s: %s", key, exc, exc_info=True)
            raise GrantIssuanceFailed("Failed to generate upload URL") from exc
        return UploadGrant(url=response["url"], fields=response["fields"], expires_in=ttl_seconds)


class InMemoryObjectStoreGateway:
    """In-memory storage for tests and local runs."""

    def __init__(self, bucket_name: str = "test-mem-bucket") -> None:
        self.bucket_name = bucket_name
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}

    def put(self, key: str, content: bytes, content_type: str) -> None:
        self.objects[key] = content
        self.content_types[key] = content_type

    def get(self, key: str) -> Optional[bytes]:
        return self.objects.get(key)

    def issue_download_grant(self, key: str, ttl_seconds: int) -> str:
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}?X-Amz-Expires={ttl_seconds}"

    def issue_upload_grant(self, key: str, ttl_seconds: int, fields: Dict[str, str]) -> UploadGrant:
        return UploadGrant(
            url=f"https://{self.bucket_name}.s3.amazonaws.com",
            fields={"key": key, **fields},
            expires_in=ttl_seconds,
        )
