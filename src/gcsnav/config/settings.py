"""Provider settings for gcsnav."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping, Optional

from gcsnav.errors import InvalidArgumentError

DEFAULT_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/devstorage.full_control",
    "https://www.googleapis.com/auth/cloudplatformprojects.readonly",
)

# Resumable upload chunks must be a multiple of 256 KiB.
UPLOAD_CHUNK_GRANULARITY: int = 256 * 1024

# Checked in order; the first non-empty value wins.
_PROJECT_ENV_VARS: tuple[str, ...] = (
    "GCSNAV_DEFAULT_PROJECT",
    "CLOUDSDK_CORE_PROJECT",
    "GOOGLE_CLOUD_PROJECT",
)


@dataclass(slots=True, frozen=True)
class ProviderSettings:
    """
    Settings for one GoogleCloudStorageProvider.

    Attributes:
        default_project: Project used for new buckets when none is given.
        drive_name: Name reported for the drive root.
        bucket_cache_lifetime: How long the known-bucket map stays fresh.
        model_cache_lifetime: How long a per-bucket content model stays fresh.
        max_workers: Threads used for project fan-out, bulk deletes and uploads.
        upload_chunk_size: Chunk size of streaming uploads.
        scopes: OAuth scopes requested from Application Default Credentials.
    """

    default_project: Optional[str] = None
    drive_name: str = "gs"
    bucket_cache_lifetime: timedelta = timedelta(minutes=1)
    model_cache_lifetime: timedelta = timedelta(minutes=1)
    max_workers: int = 8
    upload_chunk_size: int = 1024 * 1024
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)

    def __post_init__(self) -> None:
        if self.default_project is not None and not self.default_project.strip():
            raise InvalidArgumentError("default_project must be None or a non-empty string")

        if not self.drive_name or "/" in self.drive_name or "\\" in self.drive_name:
            raise InvalidArgumentError(
                "drive_name must be a non-empty name without separators",
                details={"drive_name": self.drive_name},
            )

        for name in ("bucket_cache_lifetime", "model_cache_lifetime"):
            value = getattr(self, name)
            if not isinstance(value, timedelta) or value < timedelta(0):
                raise InvalidArgumentError(f"{name} must be a non-negative timedelta")

        if self.max_workers < 1:
            raise InvalidArgumentError("max_workers must be at least 1")

        if self.upload_chunk_size <= 0 or self.upload_chunk_size % UPLOAD_CHUNK_GRANULARITY:
            raise InvalidArgumentError(
                "upload_chunk_size must be a positive multiple of 256 KiB",
                details={"upload_chunk_size": self.upload_chunk_size},
            )

        if not self.scopes or not all(isinstance(s, str) and s.strip() for s in self.scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ProviderSettings:
        """
        Build settings from environment variables.

        Reads:
            - GCSNAV_DEFAULT_PROJECT, then CLOUDSDK_CORE_PROJECT, then
              GOOGLE_CLOUD_PROJECT for the default project
            - GCSNAV_CACHE_SECONDS for both cache lifetimes
            - GCSNAV_MAX_WORKERS
            - GCSNAV_DRIVE_NAME
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        for var in _PROJECT_ENV_VARS:
            value = env.get(var, "").strip()
            if value:
                kwargs["default_project"] = value
                break

        seconds = _int_from_env(env, "GCSNAV_CACHE_SECONDS")
        if seconds is not None:
            kwargs["bucket_cache_lifetime"] = timedelta(seconds=seconds)
            kwargs["model_cache_lifetime"] = timedelta(seconds=seconds)

        workers = _int_from_env(env, "GCSNAV_MAX_WORKERS")
        if workers is not None:
            kwargs["max_workers"] = workers

        drive_name = env.get("GCSNAV_DRIVE_NAME", "").strip()
        if drive_name:
            kwargs["drive_name"] = drive_name

        return cls(**kwargs)  # type: ignore[arg-type]


def _int_from_env(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidArgumentError(
            f"{name} must be an integer",
            details={name: raw},
            cause=exc,
        ) from exc
