"""End-to-end tests for the method-routed request handler."""
import json
import math
from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest

from filedrop.config.runtime_config import UploadConfig
from filedrop.uploads.catalog import FileCatalog
from filedrop.uploads.errors import QueryFailed
from filedrop.uploads.handler import UploadRequestHandler, build_upload_handler
from filedrop.uploads.metadata_store import DynamoDBMetadataStoreGateway, InMemoryMetadataStoreGateway
from filedrop.uploads.object_store import InMemoryObjectStoreGateway, S3ObjectStoreGateway
from filedrop.uploads.service import UploadOrchestrator
from filedrop.uploads.validator import RawRequest

CONFIG = UploadConfig(bucket_name="test-bucket", table_name="test-table")


@pytest.fixture
def stores():
    return InMemoryObjectStoreGateway(), InMemoryMetadataStoreGateway()


@pytest.fixture
def handler(stores):
    objects, metadata = stores
    events = []
    orchestrator = UploadOrchestrator(objects, metadata, CONFIG, event_logger=events.append)
    return UploadRequestHandler(orchestrator, FileCatalog(metadata, event_logger=events.append))


def _post(payload, query=None) -> RawRequest:
    return RawRequest(method="POST", body=json.dumps(payload), query=query or {})


def test_upload_scenario(handler):
    before = datetime.now(timezone.utc)
    response = handler.handle(
        _post({"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8=", "expirationSeconds": 60})
    )
    assert response.status_code == 201
    body = response.body
    assert body["fileId"]
    assert body["objectKey"] == f"uploads/{body['fileId']}/a.txt"
    expires = datetime.fromisoformat(body["urlExpiration"].replace("Z", "+00:00"))
    assert before + timedelta(seconds=59) <= expires <= datetime.now(timezone.utc) + timedelta(seconds=61)


def test_list_after_upload_includes_record(handler):
    created = handler.handle(
        _post({"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8=", "expirationSeconds": 60})
    ).body
    handler.handle(_post({"fileName": "b.txt", "uploadedBy": "other@x.com", "fileContent": "SGVsbG8="}))

    response = handler.handle(RawRequest(method="GET", query={"uploadedBy": "u@x.com"}))

    assert response.status_code == 200
    items = response.body["items"]
    assert [item["fileId"] for item in items] == [created["fileId"]]
    item = items[0]
    parsed = datetime.fromisoformat(item["urlExpiration"].replace("Z", "+00:00"))
    assert item["urlExpirationEpoch"] == math.floor(parsed.timestamp())
    assert item["uploadMode"] == "inline"


def test_list_missing_owner_scenario(handler):
    response = handler.handle(RawRequest(method="GET", query={}))
    assert response.status_code == 400
    assert response.body == {"message": "Missing required field: uploadedBy"}


@pytest.mark.parametrize(
    "payload",
    [
        {"uploadedBy": "u@x.com", "fileContent": "SGVsbG8="},
        {"fileName": "a.txt", "fileContent": "SGVsbG8="},
        {"fileName": "  ", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8="},
    ],
)
def test_missing_fields_touch_no_store(payload):
    objects = mock.MagicMock()
    metadata = mock.MagicMock()
    orchestrator = UploadOrchestrator(objects, metadata, CONFIG, event_logger=lambda entry: None)
    handler = UploadRequestHandler(orchestrator, FileCatalog(metadata, event_logger=lambda entry: None))

    response = handler.handle(_post(payload))

    assert response.status_code == 400
    assert response.body["message"].startswith("Missing required field:")
    objects.put.assert_not_called()
    metadata.put.assert_not_called()


def test_invalid_base64_rejected_before_storage(handler, stores):
    response = handler.handle(_post({"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "not base64!"}))
    assert response.status_code == 400
    assert stores[0].objects == {}


@pytest.mark.parametrize("expiration", [0, -10, "ten", 2.5])
def test_bad_expiration_is_400(handler, expiration):
    response = handler.handle(
        _post({"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8=", "expirationSeconds": expiration})
    )
    assert response.status_code == 400


@pytest.mark.parametrize("expiration", [604801, 10**12])
def test_expiration_above_maximum_is_400_without_writes(handler, stores, expiration):
    response = handler.handle(
        _post({"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8=", "expirationSeconds": expiration})
    )
    assert response.status_code == 400
    assert response.body == {"message": "expirationSeconds must not exceed 604800"}
    assert stores[0].objects == {}
    assert stores[1].records == {}


def test_malformed_json_is_400(handler):
    response = handler.handle(RawRequest(method="POST", body="{oops"))
    assert response.status_code == 400
    assert response.body == {"message": "Request body must be valid JSON"}


def test_direct_upload_via_query_flag(handler, stores):
    response = handler.handle(
        _post({"fileName": "big.bin", "uploadedBy": "u@x.com", "expirationSeconds": 86400}, query={"multipart": "true"})
    )
    assert response.status_code == 201
    assert response.body["uploadGrant"]["expiresIn"] == CONFIG.max_upload_grant_seconds
    assert stores[0].objects == {}
    assert response.body["fileId"] in stores[1].records


def test_delete_flow(handler, stores):
    created = handler.handle(_post({"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8="})).body

    response = handler.handle(
        RawRequest(method="DELETE", query={"fileId": created["fileId"], "uploadedBy": "u@x.com"})
    )

    assert response.status_code == 200
    assert "message" in response.body
    assert stores[1].records == {}


def test_delete_nonexistent_is_success(handler):
    response = handler.handle(RawRequest(method="DELETE", query={"fileId": "missing", "uploadedBy": "u@x.com"}))
    assert response.status_code == 200


def test_delete_other_owner_keeps_record(handler, stores):
    created = handler.handle(_post({"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8="})).body
    response = handler.handle(
        RawRequest(method="DELETE", query={"fileId": created["fileId"], "uploadedBy": "intruder@x.com"})
    )
    assert response.status_code == 200
    assert created["fileId"] in stores[1].records


def test_delete_missing_keys_is_400(handler):
    response = handler.handle(RawRequest(method="DELETE", query={"uploadedBy": "u@x.com"}))
    assert response.status_code == 400
    assert response.body == {"message": "Missing required field: fileId"}


def test_other_verbs_are_405(handler):
    response = handler.handle(RawRequest(method="PUT", body="{}"))
    assert response.status_code == 405


def test_collaborator_failure_returns_generic_500():
    metadata = mock.MagicMock()
    metadata.query_by_owner.side_effect = QueryFailed()
    orchestrator = UploadOrchestrator(InMemoryObjectStoreGateway(), metadata, CONFIG, event_logger=lambda entry: None)
    handler = UploadRequestHandler(orchestrator, FileCatalog(metadata, event_logger=lambda entry: None))

    response = handler.handle(RawRequest(method="GET", query={"uploadedBy": "u@x.com"}))

    assert response.status_code == 500
    assert response.body == {"message": "Failed to list files"}


def test_unexpected_error_is_500():
    metadata = mock.MagicMock()
    metadata.query_by_owner.side_effect = KeyError("boom")
    orchestrator = UploadOrchestrator(InMemoryObjectStoreGateway(), metadata, CONFIG, event_logger=lambda entry: None)
    handler = UploadRequestHandler(orchestrator, FileCatalog(metadata, event_logger=lambda entry: None))

    response = handler.handle(RawRequest(method="GET", query={"uploadedBy": "u@x.com"}))

    assert response.status_code == 500
    assert response.body == {"message": "Internal server error"}


def test_build_upload_handler_wires_injected_clients():
    s3_client = mock.MagicMock()
    table = mock.MagicMock()

    handler = build_upload_handler(CONFIG, s3_client=s3_client, dynamodb_table=table)

    assert isinstance(handler.orchestrator.object_store, S3ObjectStoreGateway)
    assert isinstance(handler.orchestrator.metadata_store, DynamoDBMetadataStoreGateway)
    assert handler.catalog.metadata_store is handler.orchestrator.metadata_store
