"""Public provider exports for gcsnav."""

from __future__ import annotations

from .content import GcsContentWriter, GcsStringReader
from .host import CancellationToken, ProviderHost
from .options import CopyOptions, NewBucketOptions, NewObjectOptions
from .storage_provider import DIRECTORY_ITEM_TYPE, GoogleCloudStorageProvider

__all__ = [
    "GoogleCloudStorageProvider",
    "DIRECTORY_ITEM_TYPE",
    "ProviderHost",
    "CancellationToken",
    "NewObjectOptions",
    "NewBucketOptions",
    "CopyOptions",
    "GcsStringReader",
    "GcsContentWriter",
]
