"""Public model exports for gcsnav."""

from __future__ import annotations

from .bucket_info import BucketInfo, ProjectInfo
from .pages import BucketListPage, ObjectListPage, ProjectListPage
from .records import DriveInfo, ItemError, ProgressRecord, ProviderItem
from .storage_object import FolderPrefix, GcsItem, StorageObject

__all__ = [
    "StorageObject",
    "FolderPrefix",
    "GcsItem",
    "BucketInfo",
    "ProjectInfo",
    "ObjectListPage",
    "BucketListPage",
    "ProjectListPage",
    "DriveInfo",
    "ProviderItem",
    "ProgressRecord",
    "ItemError",
]
