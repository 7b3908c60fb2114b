"""AWS Lambda entrypoint for API Gateway proxy events."""
from __future__ import annotations

from typing import Any, Dict, Optional

from filedrop.config.runtime_config import UploadConfig
from filedrop.uploads.handler import HandlerResponse, UploadRequestHandler, build_upload_handler
from filedrop.uploads.validator import RawRequest

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST,GET,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Authorization,Content-Type",
}

_upload_handler: Optional[UploadRequestHandler] = None


def get_upload_handler() -> UploadRequestHandler:
    # Built on first invocation and reused for the life of the container.
    global _upload_handler
    if _upload_handler is None:
        _upload_handler = build_upload_handler(UploadConfig.from_env())
    return _upload_handler


def set_upload_handler(handler: Optional[UploadRequestHandler]) -> None:
    global _upload_handler
    _upload_handler = handler


def _event_method(event: Dict[str, Any]) -> str:
    method = event.get("httpMethod")
    if not method:
        method = event.get("requestContext", {}).get("http", {}).get("method", "")
    return str(method).upper()


def to_raw_request(event: Dict[str, Any]) -> RawRequest:
    return RawRequest(
        method=_event_method(event),
        body=event.get("body"),
        is_base64_encoded=bool(event.get("isBase64Encoded")),
        query=event.get("queryStringParameters") or {},
    )


def to_proxy_result(response: HandlerResponse) -> Dict[str, Any]:
    return {
        "statusCode": response.status_code,
        "headers": {**response.headers, **CORS_HEADERS},
        "body": response.to_json(),
    }


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    if _event_method(event) == "OPTIONS":
        return {"statusCode": 204, "headers": dict(CORS_HEADERS), "body": ""}
    response = get_upload_handler().handle(to_raw_request(event))
    return to_proxy_result(response)
