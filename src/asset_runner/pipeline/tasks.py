from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from asset_runner.cache.store import CacheStore
from asset_runner.cache.utils import hash_file
from asset_runner.pipeline.assets import AssetClass
from asset_runner.transforms import write_partial_indexes

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class TaskStats:
    asset: str
    processed: int = 0
    skipped: int = 0


async def run_task(name: str, task: Callable[[], Awaitable[T]]) -> T:
    logger.info("Task started. task=%s", name)
    try:
        result = await task()
    except Exception:
        logger.exception("Task failed. task=%s", name)
        raise
    logger.info("Task completed. task=%s", name)
    return result


def partials_fingerprint(asset: AssetClass) -> str:
    """Digest over every partial of an entries-mode class; any partial edit changes it."""
    digest = hashlib.sha256()
    if asset.mode != "entries" or not asset.source_root.is_dir():
        return digest.hexdigest()
    for path in sorted(asset.source_root.rglob("*")):
        if not path.is_file() or not asset.matches(path) or asset.is_entry(path):
            continue
        relative = asset.relative(path)
        digest.update(relative.as_posix().encode("utf-8"))
        digest.update(b"\0")
        digest.update(hash_file(path).encode("ascii"))
        digest.update(b"\n")
    return digest.hexdigest()


async def cache_key_options(asset: AssetClass) -> Dict[str, Any]:
    """
    Options identity used by the cache.

    Entries-mode output depends on every partial too, so their fingerprint is folded in:
    a partial edit invalidates every cached entry of the class.
    """
    key: Dict[str, Any] = {
        "kind": asset.kind,
        "options": asset.options.model_dump(mode="json"),
    }
    if asset.mode == "entries":
        key["partials"] = await asyncio.to_thread(partials_fingerprint, asset)
    return key


async def regenerate_partial_index(asset: AssetClass) -> None:
    if asset.kind != "styles" or not getattr(asset.options, "partial_index", False):
        return
    suffix = Path(asset.pattern).suffix or ".scss"
    await asyncio.to_thread(write_partial_indexes, asset.source_root, suffix=suffix)


async def transform_one(
    asset: AssetClass,
    source: Path,
    *,
    cache: Optional[CacheStore],
    cache_options: Optional[Dict[str, Any]] = None,
    force: bool = False,
) -> bool:
    """
    Transform one entry file; returns False when the cache proved it up to date.

    Transform errors propagate to the caller.
    """
    dest = asset.dest_for(source)
    if cache is not None and cache_options is None:
        cache_options = await cache_key_options(asset)

    if cache is not None and not force:
        should_process = await cache.should_process(
            source,
            dest,
            cache_options,
            artifacts=asset.artifacts_for(dest),
        )
        if not should_process:
            logger.debug("Up to date, skipped. asset=%s path=%s", asset.name, source)
            return False

    await asyncio.to_thread(dest.parent.mkdir, parents=True, exist_ok=True)
    await asset.transform(source, dest, asset.options)
    logger.info("Built. asset=%s source=%s dest=%s", asset.name, source, dest)

    if cache is not None:
        await cache.mark_processed(source, dest, cache_options)
    return True


async def build_asset_class(asset: AssetClass, *, cache: Optional[CacheStore]) -> TaskStats:
    """
    Initial build of one asset class.

    Entries are processed one at a time in sorted order; the first transform error aborts
    the rest of this class.
    """
    stats = TaskStats(asset=asset.name)
    await regenerate_partial_index(asset)

    entries = await asyncio.to_thread(asset.scan_entries)
    if not entries:
        logger.warning("No entry files found. asset=%s src=%s", asset.name, asset.source_root)
        return stats

    cache_options = await cache_key_options(asset) if cache is not None else None
    for source in entries:
        if await transform_one(asset, source, cache=cache, cache_options=cache_options):
            stats.processed += 1
        else:
            stats.skipped += 1

    logger.info(
        "Asset class built. asset=%s processed=%d skipped=%d",
        asset.name,
        stats.processed,
        stats.skipped,
    )
    return stats
