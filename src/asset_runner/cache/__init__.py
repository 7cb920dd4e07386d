"""Content-hash build cache."""

from __future__ import annotations

from asset_runner.cache.models import CacheEntry, CacheManifest, CacheStats
from asset_runner.cache.store import CacheStore

__all__ = ["CacheEntry", "CacheManifest", "CacheStats", "CacheStore"]
