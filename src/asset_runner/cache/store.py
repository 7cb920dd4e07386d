from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel

from asset_runner.cache.io import (
    MANIFEST_FILENAME,
    atomic_write_json,
    empty_manifest,
    encode_manifest,
    read_manifest_file,
)
from asset_runner.cache.models import CacheEntry, CacheManifest, CacheStats
from asset_runner.cache.utils import format_rfc3339, hash_file, hash_options, utc_now

logger = logging.getLogger(__name__)

Options = BaseModel | Mapping[str, Any]


class CacheStore:
    """
    Content-hash manifest that decides whether a source file needs transforming.

    Every failure inside the store degrades to "must process"; the cache can only make a
    build faster, never block it or make it skip work it should have done.
    """

    def __init__(self, *, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._manifest_path = self._cache_dir / MANIFEST_FILENAME
        self._manifest: Optional[CacheManifest] = None

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def manifest(self) -> Optional[CacheManifest]:
        return self._manifest

    async def initialize(self) -> None:
        try:
            await asyncio.to_thread(self._cache_dir.mkdir, parents=True, exist_ok=True)
        except OSError:
            logger.exception("Failed to create cache directory. path=%s", self._cache_dir)
        self._manifest = await asyncio.to_thread(read_manifest_file, self._manifest_path)
        logger.debug(
            "Cache manifest loaded. path=%s files=%d",
            self._manifest_path,
            len(self._manifest.files),
        )

    async def should_process(
        self,
        source: Path,
        dest: Path,
        options: Options,
        *,
        artifacts: Sequence[Path] = (),
    ) -> bool:
        manifest = self._manifest
        if manifest is None:
            return True

        try:
            current_options_hash = hash_options(options)
            if manifest.options_hash != current_options_hash:
                if manifest.options_hash is not None:
                    logger.info(
                        "Transform options changed, invalidating cache. cache_dir=%s entries=%d",
                        self._cache_dir,
                        len(manifest.files),
                    )
                manifest.options_hash = current_options_hash
                manifest.files = {}
                return True

            if not dest.exists():
                return True

            source_hash = await asyncio.to_thread(hash_file, source)
            entry = manifest.files.get(self._key(source))
            if entry is None or entry.hash != source_hash:
                return True

            for artifact in artifacts:
                if not artifact.exists():
                    return True

            return False
        except Exception:
            logger.warning("Cache check failed, processing file. path=%s", source, exc_info=True)
            return True

    async def mark_processed(self, source: Path, dest: Path, options: Options) -> None:
        manifest = self._manifest
        if manifest is None:
            return

        try:
            source_hash = await asyncio.to_thread(hash_file, source)
        except OSError:
            logger.warning("Failed to hash processed file, not caching. path=%s", source, exc_info=True)
            return

        key = self._key(source)
        previous = manifest.files.get(key)
        current_options_hash = hash_options(options)
        if manifest.options_hash != current_options_hash:
            # Entries recorded under other options are no longer trustworthy.
            manifest.files = {}
            manifest.options_hash = current_options_hash
        if previous is not None and previous.hash == source_hash and previous.dist_path == str(dest):
            # Same content, same output: the stored entry stays byte-identical.
            manifest.files[key] = previous
            return
        manifest.files[key] = CacheEntry(
            hash=source_hash,
            dist_path=str(dest),
            timestamp=format_rfc3339(utc_now()),
        )

    def forget(self, source: Path) -> None:
        if self._manifest is None:
            return
        self._manifest.files.pop(self._key(source), None)

    async def save(self) -> None:
        if self._manifest is None:
            return
        try:
            await asyncio.to_thread(atomic_write_json, self._manifest_path, encode_manifest(self._manifest))
            logger.debug("Cache manifest saved. path=%s files=%d", self._manifest_path, len(self._manifest.files))
        except Exception:
            logger.exception("Failed to save cache manifest. path=%s", self._manifest_path)

    async def clear(self) -> None:
        try:
            await asyncio.to_thread(shutil.rmtree, self._cache_dir)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Failed to clear cache directory. path=%s", self._cache_dir)
            return
        self._manifest = empty_manifest()
        logger.info("Cache cleared. path=%s", self._cache_dir)

    def stats(self) -> CacheStats:
        if self._manifest is None:
            return CacheStats(total_files=0, options_hash=None, version="")
        return CacheStats(
            total_files=len(self._manifest.files),
            options_hash=self._manifest.options_hash,
            version=self._manifest.version,
        )

    @staticmethod
    def _key(source: Path) -> str:
        return str(source.absolute())
