"""In-memory views of remote storage state."""

from __future__ import annotations

from .bucket_model import SEPARATOR, BucketModel
from .provider_cache import ProviderCache

__all__ = ["BucketModel", "ProviderCache", "SEPARATOR"]
