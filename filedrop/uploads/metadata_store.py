"""Metadata store gateway: DynamoDB implementation and an in-memory stand-in."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from filedrop.config.runtime_config import UploadConfig
from filedrop.uploads.errors import DeleteFailed, MetadataWriteFailed, QueryFailed
from filedrop.uploads.models import FileRecord

logger = logging.getLogger(__name__)


def _newest_first(records: List[FileRecord]) -> List[FileRecord]:
    return sorted(records, key=lambda r: r.uploaded_date, reverse=True)


class MetadataStoreGateway(Protocol):
    """Abstract interface for file metadata persistence."""

    def put(self, record: FileRecord) -> None:
        """Write a new record. Raises MetadataWriteFailed."""
        ...

    def query_by_owner(self, owner: str) -> List[FileRecord]:
        """Owner's records, newest first. Raises QueryFailed."""
        ...

    def delete(self, file_id: str, owner: str) -> bool:
        """Delete the owner's record; True if something was removed. Raises DeleteFailed."""
        ...


class DynamoDBMetadataStoreGateway:
    """DynamoDB-backed metadata store keyed on fileId with an owner index."""

    def __init__(self, table: Any, config: UploadConfig) -> None:
        self._table = table
        self.owner_index = config.owner_index

    def put(self, record: FileRecord) -> None:
        try:
            self._table.put_item(
                Item=record.to_item(),
                ConditionExpression=Attr("fileId").not_exists(),
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB put_item failed for %s: %s", record.file_id, exc, exc_info=True)
            raise MetadataWriteFailed() from exc

    def query_by_owner(self, owner: str) -> List[FileRecord]:
        # Single page only; no pagination cursor is exposed to callers.
        try:
            response = self._table.query(
                IndexName=self.owner_index,
                KeyConditionExpression=Key("uploadedBy").eq(owner),
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("DynamoDB query on %s failed: %s", self.owner_index, exc, exc_info=True)
            raise QueryFailed() from exc

        records = []
        for item in response.get("Items", []):
            try:
                records.append(FileRecord.from_item(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed metadata item %s: %s", item.get("fileId"), exc, exc_info=True)
        return _newest_first(records)

    def delete(self, file_id: str, owner: str) -> bool:
        try:
            response = self._table.delete_item(
                Key={"fileId": file_id},
                ConditionExpression=Attr("fileId").not_exists() | Attr("uploadedBy").eq(owner),
                ReturnValues="ALL_OLD",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                logger.warning("Refusing to delete %s: not owned by requester", file_id)
                return False
            logger.error("DynamoDB delete_item failed for %s: %s", file_id, exc, exc_info=True)
            raise DeleteFailed() from exc
        except BotoCoreError as exc:
            logger.error("DynamoDB delete_item failed for %s: %s", file_id, exc, exc_info=True)
            raise DeleteFailed() from exc
        return bool(response.get("Attributes"))


class InMemoryMetadataStoreGateway:
    """In-memory metadata store for tests and local runs."""

    def __init__(self) -> None:
        self.records: Dict[str, FileRecord] = {}

    def put(self, record: FileRecord) -> None:
        if record.file_id in self.records:
            raise MetadataWriteFailed()
        self.records[record.file_id] = record

    def query_by_owner(self, owner: str) -> List[FileRecord]:
        return _newest_first([r for r in self.records.values() if r.uploaded_by == owner])

    def delete(self, file_id: str, owner: str) -> bool:
        record = self.records.get(file_id)
        if record is None or record.uploaded_by != owner:
            return False
        del self.records[file_id]
        return True
