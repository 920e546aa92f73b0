"""Provider path parsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gcsnav.errors import InvalidArgumentError
from gcsnav.models import GcsItem

SEPARATOR: str = "/"
_SEPARATORS: tuple[str, ...] = ("/", "\\")


class GcsPathType(Enum):
    DRIVE = "drive"
    BUCKET = "bucket"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class GcsPath:
    """
    A provider path: `<bucket>[/<object key>]`.

    Both "/" and "\\" separate the bucket from the key. Backslashes inside the
    key become "/". An empty key ("bucket/") is kept as an empty string and
    names the bucket itself.
    """

    bucket: Optional[str] = None
    object_path: Optional[str] = None

    @classmethod
    def parse(cls, path: Optional[str]) -> GcsPath:
        if not path:
            return cls()

        indexes = [i for i in (path.find(s) for s in _SEPARATORS) if i >= 0]
        if not indexes:
            return cls(bucket=path)

        split = min(indexes)
        return cls(
            bucket=path[:split],
            object_path=path[split + 1 :].replace("\\", SEPARATOR),
        )

    @classmethod
    def from_item(cls, item: GcsItem) -> GcsPath:
        return cls(bucket=item.bucket, object_path=item.name)

    @property
    def path_type(self) -> GcsPathType:
        if not self.bucket:
            return GcsPathType.DRIVE
        if not self.object_path:
            return GcsPathType.BUCKET
        return GcsPathType.OBJECT

    def relative_path_to_child(self, child_object_path: str) -> str:
        """
        Return the part of `child_object_path` below this path's key.

        Raises:
            InvalidArgumentError: if the child is not under this path.
        """
        own = self.object_path or ""
        if not child_object_path.startswith(own):
            raise InvalidArgumentError(
                "Object is not a child of the path",
                details={"path": str(self), "child": child_object_path},
            )
        return child_object_path[len(own) :]

    def __str__(self) -> str:
        if not self.bucket:
            return ""
        return f"{self.bucket}{SEPARATOR}{self.object_path or ''}"
