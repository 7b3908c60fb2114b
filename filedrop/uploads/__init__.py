"""File upload engine: inline and direct-to-S3 uploads with owner-scoped metadata."""
from filedrop.uploads.catalog import FileCatalog
from filedrop.uploads.handler import UploadRequestHandler, build_upload_handler
from filedrop.uploads.metadata_store import DynamoDBMetadataStoreGateway, MetadataStoreGateway
from filedrop.uploads.models import FileRecord, UploadMode
from filedrop.uploads.object_store import ObjectStoreGateway, S3ObjectStoreGateway
from filedrop.uploads.routes import router
from filedrop.uploads.service import UploadOrchestrator

__all__ = [
    "FileCatalog",
    "FileRecord",
    "UploadMode",
    "UploadRequestHandler",
    "build_upload_handler",
    "MetadataStoreGateway",
    "DynamoDBMetadataStoreGateway",
    "ObjectStoreGateway",
    "S3ObjectStoreGateway",
    "UploadOrchestrator",
    "router",
]
