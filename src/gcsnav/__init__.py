"""gcsnav public API."""

from __future__ import annotations

from gcsnav.auth import ServiceFactory
from gcsnav.cache import CacheItem
from gcsnav.config import ProviderSettings
from gcsnav.errors import (
    ApiError,
    AuthError,
    ConflictError,
    GcsNavError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    map_http_error,
)
from gcsnav.local import BucketModel, ProviderCache
from gcsnav.models import (
    BucketInfo,
    DriveInfo,
    FolderPrefix,
    GcsItem,
    ItemError,
    ProgressRecord,
    ProjectInfo,
    ProviderItem,
    StorageObject,
)
from gcsnav.path import GcsPath, GcsPathType
from gcsnav.provider import (
    DIRECTORY_ITEM_TYPE,
    CancellationToken,
    CopyOptions,
    GcsContentWriter,
    GcsStringReader,
    GoogleCloudStorageProvider,
    NewBucketOptions,
    NewObjectOptions,
    ProviderHost,
)

__all__ = [
    # High-level
    "GoogleCloudStorageProvider",
    "ProviderSettings",
    "ProviderHost",
    "CancellationToken",
    "ServiceFactory",
    "DIRECTORY_ITEM_TYPE",
    # Options / Content
    "NewObjectOptions",
    "NewBucketOptions",
    "CopyOptions",
    "GcsStringReader",
    "GcsContentWriter",
    # Core
    "CacheItem",
    "BucketModel",
    "ProviderCache",
    "GcsPath",
    "GcsPathType",
    # Models
    "StorageObject",
    "FolderPrefix",
    "GcsItem",
    "BucketInfo",
    "ProjectInfo",
    "DriveInfo",
    "ProviderItem",
    "ProgressRecord",
    "ItemError",
    # Errors
    "GcsNavError",
    "InvalidStateError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
]
