"""Owner-scoped listing and deletion of file metadata."""
from __future__ import annotations

from typing import List

from filedrop.logging.event_log import EventLogEntry, EventLogger, default_event_logger, emit_event
from filedrop.uploads.metadata_store import MetadataStoreGateway
from filedrop.uploads.models import DeleteFileCommand, FileRecord, ListFilesCommand


class FileCatalog:
    def __init__(self, metadata_store: MetadataStoreGateway, event_logger: EventLogger = default_event_logger) -> None:
        self.metadata_store = metadata_store
        self._event_logger = event_logger

    def list_files(self, command: ListFilesCommand) -> List[FileRecord]:
        records = self.metadata_store.query_by_owner(command.uploaded_by)
        emit_event(
            self._event_logger,
            EventLogEntry(event_type="files_listed", user_id=command.uploaded_by, metadata={"count": len(records)}),
        )
        return records

    def delete_file(self, command: DeleteFileCommand) -> bool:
        """Remove the record if the caller owns it. Missing ids are not an error.

        Stored objects are left to the bucket lifecycle policy.
        """
        deleted = self.metadata_store.delete(command.file_id, command.uploaded_by)
        emit_event(
            self._event_logger,
            EventLogEntry(
                event_type="file_deleted",
                asset_id=command.file_id,
                user_id=command.uploaded_by,
                metadata={"deleted": deleted},
            ),
        )
        return deleted
