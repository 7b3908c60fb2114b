"""Method-routed request handler shared by the HTTP app and the Lambda entrypoint."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from filedrop.common.error_envelope import JSON_HEADERS, FileDropError, build_error_body
from filedrop.config.runtime_config import UploadConfig
from filedrop.logging.event_log import EventLogger, default_event_logger
from filedrop.uploads.catalog import FileCatalog
from filedrop.uploads.errors import MethodNotAllowed
from filedrop.uploads.metadata_store import DynamoDBMetadataStoreGateway
from filedrop.uploads.models import FileListResponse
from filedrop.uploads.object_store import S3ObjectStoreGateway
from filedrop.uploads.service import UploadOrchestrator
from filedrop.uploads.validator import (
    RawRequest,
    parse_delete_command,
    parse_list_command,
    parse_upload_command,
)

logger = logging.getLogger(__name__)


@dataclass
class HandlerResponse:
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))

    def to_json(self) -> str:
        return json.dumps(self.body)


class UploadRequestHandler:
    """Validates a raw request, dispatches it, and renders a status + JSON body."""

    def __init__(self, orchestrator: UploadOrchestrator, catalog: FileCatalog) -> None:
        self.orchestrator = orchestrator
        self.catalog = catalog

    def handle(self, raw: RawRequest) -> HandlerResponse:
        method = (raw.method or "").upper()
        try:
            if method == "POST":
                return self._handle_upload(raw)
            if method == "GET":
                return self._handle_list(raw)
            if method == "DELETE":
                return self._handle_delete(raw)
            raise MethodNotAllowed(method or "UNKNOWN")
        except FileDropError as exc:
            if exc.status_code >= 500:
                logger.error("%s %s failed: %s", method, exc.code, exc.__cause__ or exc)
            return HandlerResponse(status_code=exc.status_code, body=exc.to_body())
        except Exception:
            logger.exception("Unhandled error while handling %s", method)
            return HandlerResponse(status_code=500, body=build_error_body("Internal server error"))

    def _handle_upload(self, raw: RawRequest) -> HandlerResponse:
        config = self.orchestrator.config
        command = parse_upload_command(raw, config.default_expiration_seconds, config.max_expiration_seconds)
        result = self.orchestrator.upload(command)
        return HandlerResponse(status_code=201, body=result.to_body())

    def _handle_list(self, raw: RawRequest) -> HandlerResponse:
        command = parse_list_command(raw)
        records = self.catalog.list_files(command)
        return HandlerResponse(status_code=200, body=FileListResponse(items=records).to_body())

    def _handle_delete(self, raw: RawRequest) -> HandlerResponse:
        command = parse_delete_command(raw)
        self.catalog.delete_file(command)
        return HandlerResponse(status_code=200, body={"message": f"File {command.file_id} deleted"})


def build_upload_handler(
    config: UploadConfig,
    s3_client: Optional[Any] = None,
    dynamodb_table: Optional[Any] = None,
    event_logger: EventLogger = default_event_logger,
) -> UploadRequestHandler:
    """Wire long-lived AWS clients into a handler. Call once per process."""
    if s3_client is None:
        s3_client = boto3.client(
            "s3",
            region_name=config.region,
            config=Config(signature_version="s3v4"),
        )
    if dynamodb_table is None:
        dynamodb_table = boto3.resource("dynamodb", region_name=config.region).Table(config.table_name)

    metadata_store = DynamoDBMetadataStoreGateway(dynamodb_table, config)
    orchestrator = UploadOrchestrator(
        object_store=S3ObjectStoreGateway(s3_client, config),
        metadata_store=metadata_store,
        config=config,
        event_logger=event_logger,
    )
    return UploadRequestHandler(orchestrator, FileCatalog(metadata_store, event_logger=event_logger))
