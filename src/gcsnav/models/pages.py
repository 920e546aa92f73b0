"""Single pages of paginated list responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .bucket_info import BucketInfo, ProjectInfo
from .storage_object import StorageObject


@dataclass(slots=True)
class ObjectListPage:
    items: list[StorageObject] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    next_page_token: Optional[str] = None


@dataclass(slots=True)
class BucketListPage:
    items: list[BucketInfo] = field(default_factory=list)
    next_page_token: Optional[str] = None


@dataclass(slots=True)
class ProjectListPage:
    items: list[ProjectInfo] = field(default_factory=list)
    next_page_token: Optional[str] = None
