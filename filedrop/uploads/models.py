"""Upload data models (Pydantic).

Wire and storage shapes use camelCase keys; Python attributes stay snake_case.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_CONTENT_TYPE = "application/octet-stream"
OBJECT_KEY_PREFIX = "uploads"


def build_object_key(file_id: str, file_name: str) -> str:
    return f"{OBJECT_KEY_PREFIX}/{file_id}/{file_name}"


def expiration_epoch(expires_at: datetime) -> int:
    return math.floor(expires_at.timestamp())


class UploadMode(str, Enum):
    inline = "inline"
    direct = "direct"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FileRecord(_CamelModel):
    """
    Immutable metadata for one uploaded file.

    Keyed by file_id; uploaded_by feeds the owner index. url_expiration_epoch is
    also the table's TTL attribute, so the record lapses with its download link.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    file_id: str
    file_name: str
    uploaded_by: str
    uploaded_date: datetime
    object_key: str
    download_url: str
    url_expiration: datetime
    url_expiration_epoch: int
    upload_mode: UploadMode = UploadMode.inline

    @model_validator(mode="after")
    def _check_expiration_epoch(self) -> "FileRecord":
        if self.url_expiration_epoch != expiration_epoch(self.url_expiration):
            raise ValueError("urlExpirationEpoch does not match urlExpiration")
        return self

    @classmethod
    def create(
        cls,
        file_id: str,
        file_name: str,
        uploaded_by: str,
        object_key: str,
        download_url: str,
        uploaded_date: datetime,
        expires_at: datetime,
        upload_mode: UploadMode,
    ) -> "FileRecord":
        return cls(
            file_id=file_id,
            file_name=file_name,
            uploaded_by=uploaded_by,
            uploaded_date=uploaded_date,
            object_key=object_key,
            download_url=download_url,
            url_expiration=expires_at,
            url_expiration_epoch=expiration_epoch(expires_at),
            upload_mode=upload_mode,
        )

    def to_item(self) -> Dict[str, Any]:
        """Attribute map as written to the metadata table."""
        return self.to_body()

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "FileRecord":
        # The DynamoDB resource layer returns numbers as Decimal.
        data = {k: int(v) if isinstance(v, Decimal) else v for k, v in item.items()}
        return cls.model_validate(data)


class UploadCommand(BaseModel):
    file_name: str
    uploaded_by: str
    file_content: Optional[str] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    expiration_seconds: int
    mode: UploadMode = UploadMode.inline


class ListFilesCommand(BaseModel):
    uploaded_by: str


class DeleteFileCommand(BaseModel):
    file_id: str
    uploaded_by: str


class UploadGrant(_CamelModel):
    """Signed form a browser posts to object storage directly."""
    url: str
    fields: Dict[str, str] = Field(default_factory=dict)
    expires_in: int
    expiration: Optional[datetime] = None

    def expiring_from(self, issued_at: datetime) -> "UploadGrant":
        return self.model_copy(update={"expiration": issued_at + timedelta(seconds=self.expires_in)})


class UploadResult(_CamelModel):
    file_id: str
    object_key: str
    download_url: str
    url_expiration: datetime
    upload_grant: Optional[UploadGrant] = None


class FileListResponse(_CamelModel):
    items: List[FileRecord] = Field(default_factory=list)
