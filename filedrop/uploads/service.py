"""Upload orchestration: inline and direct-to-storage strategies."""
from __future__ import annotations

import base64
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from filedrop.config.runtime_config import UploadConfig
from filedrop.logging.event_log import EventLogEntry, EventLogger, default_event_logger, emit_event
from filedrop.uploads.metadata_store import MetadataStoreGateway
from filedrop.uploads.models import (
    FileRecord,
    UploadCommand,
    UploadGrant,
    UploadMode,
    UploadResult,
    build_object_key,
)
from filedrop.uploads.object_store import ObjectStoreGateway


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_file_id() -> str:
    return str(uuid.uuid4())


class UploadOrchestrator:
    """
    Sequences object store and metadata store calls for one upload.

    Steps run strictly in order and nothing is rolled back:
    - inline: put object -> download grant -> metadata. A metadata failure leaves
      the object in storage without a record; the bucket lifecycle reclaims it.
    - direct: upload grant -> download grant -> metadata. The record is written
      before the browser transfers any bytes, so it may point at an object that
      never arrives.
    """

    def __init__(
        self,
        object_store: ObjectStoreGateway,
        metadata_store: MetadataStoreGateway,
        config: UploadConfig,
        event_logger: EventLogger = default_event_logger,
        clock: Callable[[], datetime] = _now,
        id_factory: Callable[[], str] = _new_file_id,
    ) -> None:
        self.object_store = object_store
        self.metadata_store = metadata_store
        self.config = config
        self._event_logger = event_logger
        self._clock = clock
        self._id_factory = id_factory

    def upload(self, command: UploadCommand) -> UploadResult:
        file_id = self._id_factory()
        object_key = build_object_key(file_id, command.file_name)
        if command.mode is UploadMode.direct:
            return self._upload_direct(command, file_id, object_key)
        return self._upload_inline(command, file_id, object_key)

    def upload_grant_ttl(self, requested_seconds: int) -> int:
        return min(requested_seconds, self.config.max_upload_grant_seconds)

    def _upload_inline(self, command: UploadCommand, file_id: str, object_key: str) -> UploadResult:
        content = base64.b64decode(command.file_content or "")
        self.object_store.put(object_key, content, command.content_type)

        uploaded_date = self._clock()
        download_url = self.object_store.issue_download_grant(object_key, command.expiration_seconds)
        record = self._persist(command, file_id, object_key, download_url, uploaded_date)

        emit_event(
            self._event_logger,
            EventLogEntry(
                event_type="file_uploaded",
                asset_id=file_id,
                user_id=command.uploaded_by,
                metadata={
                    "object_key": object_key,
                    "content_type": command.content_type,
                    "size_bytes": len(content),
                    "upload_mode": UploadMode.inline.value,
                },
            ),
        )
        return self._result(record)

    def _upload_direct(self, command: UploadCommand, file_id: str, object_key: str) -> UploadResult:
        grant_ttl = self.upload_grant_ttl(command.expiration_seconds)
        issued_at = self._clock()
        grant = self.object_store.issue_upload_grant(
            object_key, grant_ttl, {"Content-Type": command.content_type}
        )
        download_url = self.object_store.issue_download_grant(object_key, command.expiration_seconds)
        record = self._persist(command, file_id, object_key, download_url, issued_at)

        emit_event(
            self._event_logger,
            EventLogEntry(
                event_type="upload_grant_issued",
                asset_id=file_id,
                user_id=command.uploaded_by,
                metadata={
                    "object_key": object_key,
                    "content_type": command.content_type,
                    "grant_ttl_seconds": grant_ttl,
                    "upload_mode": UploadMode.direct.value,
                },
            ),
        )
        return self._result(record, grant.expiring_from(issued_at))

    def _persist(
        self,
        command: UploadCommand,
        file_id: str,
        object_key: str,
        download_url: str,
        uploaded_date: datetime,
    ) -> FileRecord:
        record = FileRecord.create(
            file_id=file_id,
            file_name=command.file_name,
            uploaded_by=command.uploaded_by,
            object_key=object_key,
            download_url=download_url,
            uploaded_date=uploaded_date,
            expires_at=uploaded_date + timedelta(seconds=command.expiration_seconds),
            upload_mode=command.mode,
        )
        self.metadata_store.put(record)
        return record

    @staticmethod
    def _result(record: FileRecord, grant: Optional[UploadGrant] = None) -> UploadResult:
        return UploadResult(
            file_id=record.file_id,
            object_key=record.object_key,
            download_url=record.download_url,
            url_expiration=record.url_expiration,
            upload_grant=grant,
        )
