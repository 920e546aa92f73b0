from __future__ import annotations

from .cache_item import DEFAULT_LIFETIME, CacheItem

__all__ = ["CacheItem", "DEFAULT_LIFETIME"]
