"""Optional parameters of provider operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from gcsnav.errors import InvalidArgumentError

OBJECT_ACLS: frozenset[str] = frozenset(
    {
        "authenticatedRead",
        "bucketOwnerFullControl",
        "bucketOwnerRead",
        "private",
        "projectPrivate",
        "publicRead",
    }
)

BUCKET_ACLS: frozenset[str] = frozenset(
    {
        "authenticatedRead",
        "private",
        "projectPrivate",
        "publicRead",
        "publicReadWrite",
    }
)

STORAGE_CLASSES: frozenset[str] = frozenset(
    {
        "COLDLINE",
        "DURABLE_REDUCED_AVAILABILITY",
        "MULTI_REGIONAL",
        "NEARLINE",
        "REGIONAL",
        "STANDARD",
    }
)


def _check_acl(name: str, value: Optional[str], allowed: frozenset[str]) -> None:
    if value is not None and value not in allowed:
        raise InvalidArgumentError(
            f"{name} must be one of {', '.join(sorted(allowed))}",
            details={name: value},
        )


@dataclass(slots=True, frozen=True)
class NewObjectOptions:
    """
    Options for creating an object.

    Attributes:
        file: Local file to upload instead of the item value.
        content_type: Content type of the object. Inferred from the file
            extension for uploads, "text/plain; charset=utf-8" otherwise.
        predefined_acl: Predefined ACL applied to the new object.
    """

    file: Optional[str] = None
    content_type: Optional[str] = None
    predefined_acl: Optional[str] = None

    def __post_init__(self) -> None:
        _check_acl("predefined_acl", self.predefined_acl, OBJECT_ACLS)


@dataclass(slots=True, frozen=True)
class NewBucketOptions:
    """
    Options for creating a bucket.

    Attributes:
        project: Project that owns the bucket. Falls back to the configured
            default project, then to the project of the credentials.
        storage_class: One of STORAGE_CLASSES (case-insensitive).
        location: Location of the bucket, e.g. "US" or "europe-west1".
        default_bucket_acl: Predefined ACL of the bucket.
        default_object_acl: Predefined default ACL of objects in the bucket.
    """

    project: Optional[str] = None
    storage_class: Optional[str] = None
    location: Optional[str] = None
    default_bucket_acl: Optional[str] = None
    default_object_acl: Optional[str] = None

    def __post_init__(self) -> None:
        if self.storage_class is not None:
            upper = self.storage_class.upper()
            if upper not in STORAGE_CLASSES:
                raise InvalidArgumentError(
                    f"storage_class must be one of {', '.join(sorted(STORAGE_CLASSES))}",
                    details={"storage_class": self.storage_class},
                )
            object.__setattr__(self, "storage_class", upper)

        _check_acl("default_bucket_acl", self.default_bucket_acl, BUCKET_ACLS)
        _check_acl("default_object_acl", self.default_object_acl, OBJECT_ACLS)


@dataclass(slots=True, frozen=True)
class CopyOptions:
    """Options applied to every copy request of one copy_item call."""

    source_generation: Optional[int] = None
    destination_acl: Optional[str] = None

    def __post_init__(self) -> None:
        if self.source_generation is not None and self.source_generation < 0:
            raise InvalidArgumentError("source_generation must be non-negative")
        _check_acl("destination_acl", self.destination_acl, OBJECT_ACLS)
