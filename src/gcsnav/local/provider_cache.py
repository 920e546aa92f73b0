"""Caches owned by one provider instance."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from gcsnav.cache import DEFAULT_LIFETIME, CacheItem
from gcsnav.models import BucketInfo
from gcsnav.util.time import now_utc

from .bucket_model import BucketModel

logger = logging.getLogger(__name__)


class ProviderCache:
    """
    Known-bucket map and per-bucket content models of one provider.

    Not thread-safe. Only the thread driving the provider reads or writes it;
    worker threads hand their results back to that thread.
    """

    def __init__(
        self,
        *,
        bucket_lifetime: timedelta = DEFAULT_LIFETIME,
        model_lifetime: timedelta = DEFAULT_LIFETIME,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._clock = clock
        self._model_lifetime = model_lifetime
        self.buckets: CacheItem[dict[str, BucketInfo]] = CacheItem(
            lifetime=bucket_lifetime,
            clock=clock,
        )
        self._models: dict[str, CacheItem[BucketModel]] = {}

    # ----------------------------
    # Bucket content models
    # ----------------------------
    def bucket_model(self, bucket: str, build: Callable[[], BucketModel]) -> BucketModel:
        """Return the model of `bucket`, building it when missing or expired."""
        cell = self._models.get(bucket)
        if cell is None:
            cell = CacheItem(build, self._model_lifetime, clock=self._clock)
            self._models[bucket] = cell
        elif cell.out_of_date():
            logger.debug("Content model of bucket %s expired", bucket)
        return cell.value_with(build)

    def invalidate_models(self) -> None:
        """Drop every bucket content model."""
        if self._models:
            logger.debug("Dropping %d bucket content models", len(self._models))
        self._models.clear()

    # ----------------------------
    # Known buckets
    # ----------------------------
    def known_buckets(self) -> Optional[dict[str, BucketInfo]]:
        """The last enumerated bucket map, or None if it was never built."""
        return self.buckets.last_value()

    def remember_bucket(self, bucket: BucketInfo) -> None:
        known = self.buckets.last_value()
        if known is not None:
            known[bucket.name] = bucket

    def forget_bucket(self, name: str) -> None:
        known = self.buckets.last_value()
        if known is not None:
            known.pop(name, None)

    def clear(self) -> None:
        """Drop everything, as on provider teardown."""
        self.buckets.reset()
        self._models.clear()
