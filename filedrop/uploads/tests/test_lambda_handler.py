"""Tests for the API Gateway Lambda entrypoint."""
import base64
import json

import pytest

from filedrop.config.runtime_config import UploadConfig
from filedrop.uploads import lambda_handler
from filedrop.uploads.catalog import FileCatalog
from filedrop.uploads.handler import UploadRequestHandler
from filedrop.uploads.metadata_store import InMemoryMetadataStoreGateway
from filedrop.uploads.object_store import InMemoryObjectStoreGateway
from filedrop.uploads.service import UploadOrchestrator

CONFIG = UploadConfig(bucket_name="test-bucket", table_name="test-table")


@pytest.fixture(autouse=True)
def in_memory_handler():
    metadata = InMemoryMetadataStoreGateway()
    orchestrator = UploadOrchestrator(InMemoryObjectStoreGateway(), metadata, CONFIG, event_logger=lambda entry: None)
    lambda_handler.set_upload_handler(
        UploadRequestHandler(orchestrator, FileCatalog(metadata, event_logger=lambda entry: None))
    )
    yield
    lambda_handler.set_upload_handler(None)


def test_post_with_base64_encoded_body():
    payload = {"fileName": "a.txt", "uploadedBy": "u@x.com", "fileContent": "SGVsbG8="}
    event = {
        "httpMethod": "POST",
        "body": base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii"),
        "isBase64Encoded": True,
        "queryStringParameters": None,
    }

    result = lambda_handler.handler(event, None)

    assert result["statusCode"] == 201
    assert result["headers"]["Content-Type"] == "application/json"
    assert result["headers"]["Access-Control-Allow-Origin"] == "*"
    assert json.loads(result["body"])["objectKey"].startswith("uploads/")


def test_get_missing_owner():
    result = lambda_handler.handler({"httpMethod": "GET", "queryStringParameters": None}, None)
    assert result["statusCode"] == 400
    assert json.loads(result["body"]) == {"message": "Missing required field: uploadedBy"}


def test_http_api_v2_method_lookup():
    event = {"requestContext": {"http": {"method": "GET"}}, "queryStringParameters": {"uploadedBy": "u@x.com"}}
    result = lambda_handler.handler(event, None)
    assert result["statusCode"] == 200
    assert json.loads(result["body"]) == {"items": []}


def test_options_preflight():
    result = lambda_handler.handler({"httpMethod": "OPTIONS"}, None)
    assert result["statusCode"] == 204
    assert "DELETE" in result["headers"]["Access-Control-Allow-Methods"]


def test_patch_is_405():
    result = lambda_handler.handler({"httpMethod": "PATCH", "body": "{}"}, None)
    assert result["statusCode"] == 405
