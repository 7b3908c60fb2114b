"""Runtime configuration helpers for filedrop."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

DEFAULT_OWNER_INDEX = "uploadedByIndex"
DEFAULT_URL_EXPIRATION_SECONDS = 3600
DEFAULT_MAX_UPLOAD_GRANT_SECONDS = 900
# SigV4 presigned URLs are capped at seven days.
DEFAULT_MAX_URL_EXPIRATION_SECONDS = 604800
DEFAULT_MAX_UPLOAD_BYTES = 104857600  # 100MB


class ConfigError(RuntimeError):
    pass


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_file_bucket_name() -> Optional[str]:
    return _get_env("FILE_BUCKET_NAME")


def get_file_metadata_table() -> Optional[str]:
    return _get_env("FILE_METADATA_TABLE")


def get_file_owner_index() -> str:
    return _get_env("FILE_OWNER_INDEX") or DEFAULT_OWNER_INDEX


def get_default_url_expiration() -> Optional[str]:
    return _get_env("DEFAULT_URL_EXPIRATION")


def get_max_upload_grant_seconds() -> Optional[str]:
    return _get_env("MAX_UPLOAD_GRANT_SECONDS")


def get_max_url_expiration() -> Optional[str]:
    return _get_env("MAX_URL_EXPIRATION")


def get_max_upload_bytes() -> Optional[str]:
    return _get_env("MAX_UPLOAD_BYTES")


def get_region() -> Optional[str]:
    return _get_env("AWS_REGION") or _get_env("AWS_DEFAULT_REGION")


def get_cors_allow_origins() -> Tuple[str, ...]:
    raw = _get_env("CORS_ALLOW_ORIGINS") or "*"
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def _positive_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got: {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be a positive integer, got: {value}")
    return value


@dataclass(frozen=True)
class UploadConfig:
    """Validated settings shared by the gateways and the orchestrator.

    Built once at process start; missing bucket or table names fail here rather
    than on the first upload.
    """

    bucket_name: str
    table_name: str
    owner_index: str = DEFAULT_OWNER_INDEX
    default_expiration_seconds: int = DEFAULT_URL_EXPIRATION_SECONDS
    max_upload_grant_seconds: int = DEFAULT_MAX_UPLOAD_GRANT_SECONDS
    max_expiration_seconds: int = DEFAULT_MAX_URL_EXPIRATION_SECONDS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    region: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.bucket_name:
            raise ConfigError(
                "FILE_BUCKET_NAME config missing. "
                "Set FILE_BUCKET_NAME env var to the S3 bucket holding uploads."
            )
        if not self.table_name:
            raise ConfigError(
                "FILE_METADATA_TABLE config missing. "
                "Set FILE_METADATA_TABLE env var to the DynamoDB metadata table."
            )
        for name in (
            "default_expiration_seconds",
            "max_upload_grant_seconds",
            "max_expiration_seconds",
            "max_upload_bytes",
        ):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be a positive integer")
        if self.default_expiration_seconds > self.max_expiration_seconds:
            raise ConfigError("default_expiration_seconds must not exceed max_expiration_seconds")

    @classmethod
    def from_env(cls) -> "UploadConfig":
        return cls(
            bucket_name=(get_file_bucket_name() or "").strip(),
            table_name=(get_file_metadata_table() or "").strip(),
            owner_index=get_file_owner_index(),
            default_expiration_seconds=_positive_int(
                "DEFAULT_URL_EXPIRATION", get_default_url_expiration(), DEFAULT_URL_EXPIRATION_SECONDS
            ),
            max_upload_grant_seconds=_positive_int(
                "MAX_UPLOAD_GRANT_SECONDS", get_max_upload_grant_seconds(), DEFAULT_MAX_UPLOAD_GRANT_SECONDS
            ),
            max_expiration_seconds=_positive_int(
                "MAX_URL_EXPIRATION", get_max_url_expiration(), DEFAULT_MAX_URL_EXPIRATION_SECONDS
            ),
            max_upload_bytes=_positive_int("MAX_UPLOAD_BYTES", get_max_upload_bytes(), DEFAULT_MAX_UPLOAD_BYTES),
            region=get_region(),
        )
