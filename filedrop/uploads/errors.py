"""Error taxonomy for the upload core.

Client-caused errors are 400 and echo their message. Collaborator failures are 500
with a generic message; the cause is logged where it is raised.
"""
from __future__ import annotations

from filedrop.common.error_envelope import FileDropError


class ValidationFailure(FileDropError):
    code = "validation_failed"
    status_code = 400
    default_message = "Invalid request"


class MalformedTransport(ValidationFailure):
    code = "malformed_transport"
    default_message = "Unable to decode base64-encoded body"


class MalformedPayload(ValidationFailure):
    code = "malformed_payload"
    default_message = "Request body must be valid JSON"


class MissingField(ValidationFailure):
    code = "missing_field"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Missing required field: {field}")


class InvalidEncoding(ValidationFailure):
    code = "invalid_encoding"
    default_message = "fileContent must be valid base64"


class InvalidExpiration(ValidationFailure):
    code = "invalid_expiration"
    default_message = "expirationSeconds must be a positive integer"


class MethodNotAllowed(FileDropError):
    code = "method_not_allowed"
    status_code = 405

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method {method} not allowed")


class CollaboratorFailure(FileDropError):
    code = "collaborator_failed"
    status_code = 500


class StorageWriteFailed(CollaboratorFailure):
    code = "storage_write_failed"
    default_message = "Failed to store file"


class GrantIssuanceFailed(CollaboratorFailure):
    code = "grant_issuance_failed"
    default_message = "Failed to generate download URL"


class MetadataWriteFailed(CollaboratorFailure):
    code = "metadata_write_failed"
    default_message = "Failed to store metadata"


class QueryFailed(CollaboratorFailure):
    code = "query_failed"
    default_message = "Failed to list files"


class DeleteFailed(CollaboratorFailure):
    code = "delete_failed"
    default_message = "Failed to delete file"
