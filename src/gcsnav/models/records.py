"""Records emitted by the provider to its caller and host."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

ProgressRecordType = Literal["processing", "completed"]


@dataclass(slots=True, frozen=True)
class DriveInfo:
    """The drive root itself."""

    name: str
    root: str = ""


@dataclass(slots=True, frozen=True)
class ProviderItem:
    """
    One item emitted by a navigation operation.

    `item` is a DriveInfo, BucketInfo, StorageObject or FolderPrefix (or the
    child name for get_child_names); `path` is the provider path of the item.
    """

    item: Any
    path: str
    is_container: bool


@dataclass(slots=True, frozen=True)
class ProgressRecord:
    """Progress of a long-running bulk operation."""

    activity_id: int
    activity: str
    status: str
    percent_complete: int
    record_type: ProgressRecordType = "processing"


@dataclass(slots=True, frozen=True)
class ItemError:
    """A non-fatal failure of one item within a larger operation."""

    error: BaseException
    target: str

    @property
    def message(self) -> str:
        return str(self.error)
