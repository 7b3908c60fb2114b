"""Request parsing and validation for the upload endpoints.

Turns a raw request (possibly base64-wrapped JSON body plus query string) into a
typed command, raising a 400-class error from ``filedrop.uploads.errors`` on the
first problem found. Nothing here touches storage.
"""
from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from filedrop.uploads.errors import (
    InvalidEncoding,
    InvalidExpiration,
    MalformedPayload,
    MalformedTransport,
    MissingField,
)
from filedrop.uploads.models import (
    DEFAULT_CONTENT_TYPE,
    DeleteFileCommand,
    ListFilesCommand,
    UploadCommand,
    UploadMode,
)

_BASE64_PATTERN = re.compile(r"^([A-Za-z0-9+/]{4})*([A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$")
_WHITESPACE = re.compile(r"\s+")
MULTIPART_QUERY_FLAG = "multipart"


@dataclass
class RawRequest:
    method: str
    body: Optional[Union[str, bytes]] = None
    is_base64_encoded: bool = False
    query: Mapping[str, str] = field(default_factory=dict)


def decode_body(raw: RawRequest) -> str:
    if raw.body is None or len(raw.body) == 0:
        raise MalformedPayload("Missing request body")

    if raw.is_base64_encoded:
        try:
            decoded = base64.b64decode(raw.body, validate=True)
            return decoded.decode("utf-8")
        except (binascii.Error, ValueError) as exc:
            raise MalformedTransport() from exc

    if isinstance(raw.body, bytes):
        try:
            return raw.body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedPayload("Request body must be UTF-8 encoded JSON") from exc
    return raw.body


def parse_payload(raw: RawRequest) -> Dict[str, Any]:
    text = decode_body(raw)
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise MalformedPayload() from exc
    if not isinstance(payload, dict):
        raise MalformedPayload("Request body must be a JSON object")
    return payload


def require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise MissingField(field_name)
    trimmed = value.strip()
    if not trimmed:
        raise MissingField(field_name)
    return trimmed


def normalize_base64(content: Any) -> str:
    if not isinstance(content, str) or not content:
        raise InvalidEncoding("fileContent must be a non-empty base64 string")
    sanitized = _WHITESPACE.sub("", content)
    if not sanitized:
        raise InvalidEncoding("fileContent must be a non-empty base64 string")
    if not _BASE64_PATTERN.match(sanitized):
        raise InvalidEncoding()
    return sanitized


def parse_expiration(value: Any, default: int, maximum: Optional[int] = None) -> int:
    if value is None:
        return default
    # bool is an int subclass; true/false are not durations.
    if isinstance(value, bool):
        raise InvalidExpiration("expirationSeconds must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidExpiration("expirationSeconds must be an integer")
        parsed = int(value)
    elif isinstance(value, str):
        parsed = _parse_integer_text(value)
    else:
        raise InvalidExpiration("expirationSeconds must be an integer")
    if parsed <= 0:
        raise InvalidExpiration()
    if maximum is not None and parsed > maximum:
        raise InvalidExpiration(f"expirationSeconds must not exceed {maximum}")
    return parsed


def _parse_integer_text(text: str) -> int:
    stripped = text.strip()
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError as exc:
        raise InvalidExpiration("expirationSeconds must be an integer") from exc
    if not number.is_integer():
        raise InvalidExpiration("expirationSeconds must be an integer")
    return int(number)


def resolve_content_type(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_CONTENT_TYPE


def resolve_upload_mode(query: Mapping[str, str]) -> UploadMode:
    flag = query.get(MULTIPART_QUERY_FLAG)
    if isinstance(flag, str) and flag.strip().lower() == "true":
        return UploadMode.direct
    return UploadMode.inline


def parse_upload_command(
    raw: RawRequest,
    default_expiration_seconds: int,
    max_expiration_seconds: Optional[int] = None,
) -> UploadCommand:
    payload = parse_payload(raw)
    file_name = require_text(payload.get("fileName"), "fileName")
    uploaded_by = require_text(payload.get("uploadedBy"), "uploadedBy")
    mode = resolve_upload_mode(raw.query or {})

    file_content = None
    if mode is UploadMode.inline:
        file_content = normalize_base64(payload.get("fileContent"))

    return UploadCommand(
        file_name=file_name,
        uploaded_by=uploaded_by,
        file_content=file_content,
        content_type=resolve_content_type(payload.get("contentType")),
        expiration_seconds=parse_expiration(
            payload.get("expirationSeconds"), default_expiration_seconds, max_expiration_seconds
        ),
        mode=mode,
    )


def parse_list_command(raw: RawRequest) -> ListFilesCommand:
    query = raw.query or {}
    return ListFilesCommand(uploaded_by=require_text(query.get("uploadedBy"), "uploadedBy"))


def parse_delete_command(raw: RawRequest) -> DeleteFileCommand:
    query = raw.query or {}
    return DeleteFileCommand(
        file_id=require_text(query.get("fileId"), "fileId"),
        uploaded_by=require_text(query.get("uploadedBy"), "uploadedBy"),
    )
