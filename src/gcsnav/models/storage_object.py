"""Data model for Cloud Storage objects and synthesized folders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from gcsnav.util.mime import FOLDER_CONTENT_TYPE


@dataclass(slots=True)
class StorageObject:
    """
    A real object stored in a bucket.

    Notes:
        - `name` is the full key. Keys use "/" as a conventional separator but
          the store has no directories; a key ending in "/" is a folder marker.
    """

    bucket: str
    name: str

    content_type: Optional[str] = None
    size: Optional[int] = None
    generation: Optional[int] = None
    media_link: Optional[str] = None
    md5_hash: Optional[str] = None
    time_created: Optional[datetime] = None
    updated: Optional[datetime] = None

    @property
    def is_synthetic(self) -> bool:
        return False

    @property
    def is_folder_marker(self) -> bool:
        return self.name.endswith("/")


@dataclass(slots=True, frozen=True)
class FolderPrefix:
    """
    A folder synthesized from a key prefix that has no backing object.

    `name` always ends with "/", the same shape the list API uses for
    common prefixes.
    """

    bucket: str
    name: str
    content_type: str = field(default=FOLDER_CONTENT_TYPE, init=False)

    def __post_init__(self) -> None:
        if not self.name.endswith("/"):
            object.__setattr__(self, "name", self.name + "/")

    @property
    def is_synthetic(self) -> bool:
        return True

    @property
    def is_folder_marker(self) -> bool:
        return True


GcsItem = Union[StorageObject, FolderPrefix]
