"""Data models for buckets and projects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ACTIVE_LIFECYCLE_STATE: str = "ACTIVE"


@dataclass(slots=True)
class BucketInfo:
    """Metadata of a Cloud Storage bucket."""

    name: str

    id: Optional[str] = None
    project_number: Optional[str] = None
    location: Optional[str] = None
    storage_class: Optional[str] = None
    time_created: Optional[datetime] = None


@dataclass(slots=True)
class ProjectInfo:
    """A project visible to the caller's identity."""

    project_id: str

    name: Optional[str] = None
    project_number: Optional[str] = None
    lifecycle_state: Optional[str] = None

    @property
    def is_active(self) -> bool:
        # The storage API treats inactive projects as nonexistent.
        return self.lifecycle_state == ACTIVE_LIFECYCLE_STATE
