from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from asset_runner.cache.store import CacheStore
from asset_runner.pipeline.assets import AssetClass
from asset_runner.pipeline.tasks import cache_key_options, regenerate_partial_index, transform_one
from asset_runner.watch.debounce import Debouncer
from asset_runner.watch.events import (
    EntryAdded,
    EntryChanged,
    EntryRemoved,
    FileEvent,
    PartialChanged,
    WatchEvent,
)
from asset_runner.watch.tracker import DependencyTracker

logger = logging.getLogger(__name__)


class WatchState(Enum):
    IDLE = "idle"
    WATCHING = "watching"
    STOPPED = "stopped"


class WatchController:
    """
    Watch-mode state machine for one asset class.

    Entry events transform that one file right away. Partial events schedule a debounced
    recompile of the whole EntrySet. A failing transform is logged and never stops the
    watcher or the rest of a batch.
    """

    def __init__(
        self,
        *,
        asset: AssetClass,
        debouncer: Debouncer,
        cache: Optional[CacheStore] = None,
    ) -> None:
        self._asset = asset
        self._debouncer = debouncer
        self._cache = cache
        self._tracker = DependencyTracker(asset)
        self._state = WatchState.IDLE
        self._last_partial: Optional[Path] = None

    @property
    def asset(self) -> AssetClass:
        return self._asset

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def tracker(self) -> DependencyTracker:
        return self._tracker

    async def start(self) -> None:
        if self._state is not WatchState.IDLE:
            raise RuntimeError(f"Watch controller cannot start from state {self._state.value}")
        count = await asyncio.to_thread(self._tracker.seed)
        self._state = WatchState.WATCHING
        logger.info("Watching. asset=%s src=%s entries=%d", self._asset.name, self._asset.source_root, count)

    async def handle(self, event: FileEvent) -> None:
        if self._state is not WatchState.WATCHING:
            logger.debug("Event ignored. asset=%s state=%s event=%s", self._asset.name, self._state.value, event)
            return
        watch_event = self._tracker.classify(event)
        if watch_event is None:
            return
        await self.dispatch(watch_event)

    async def dispatch(self, event: WatchEvent) -> None:
        if isinstance(event, (EntryAdded, EntryChanged)):
            verb = "added" if isinstance(event, EntryAdded) else "changed"
            logger.info("Entry %s. asset=%s path=%s", verb, self._asset.name, event.path)
            self._tracker.add_entry(event.path)
            await self._build_entry(event.path)
        elif isinstance(event, EntryRemoved):
            logger.info("Entry removed. asset=%s path=%s", self._asset.name, event.path)
            self._tracker.remove_entry(event.path)
            await self._remove_outputs(event.path)
        elif isinstance(event, PartialChanged):
            logger.info("Partial %s. asset=%s path=%s", event.kind, self._asset.name, event.path)
            if event.kind in ("add", "unlink"):
                # The recompile reads the index, so it must be current before the timer can fire.
                try:
                    await regenerate_partial_index(self._asset)
                except Exception:
                    logger.exception("Partial index regeneration failed. asset=%s", self._asset.name)
            self._last_partial = event.path
            self._debouncer.schedule(self._asset.name, self._recompile_entries)
        else:
            raise TypeError(f"Unknown watch event: {event!r}")

    async def close(self) -> None:
        self._debouncer.cancel(self._asset.name)
        self._state = WatchState.STOPPED
        logger.info("Watch stopped. asset=%s", self._asset.name)

    async def _build_entry(self, source: Path) -> bool:
        try:
            await transform_one(self._asset, source, cache=self._cache, force=True)
        except Exception:
            logger.exception("Transform failed. asset=%s path=%s", self._asset.name, source)
            if self._cache is not None:
                self._cache.forget(source)
            return False
        finally:
            if self._cache is not None:
                await self._cache.save()
        return True

    async def _recompile_entries(self) -> None:
        entries = self._tracker.affected_entries(self._last_partial)
        logger.debug(
            "Recompiling entries after partial change. asset=%s trigger=%s entries=%d",
            self._asset.name,
            self._last_partial,
            len(entries),
        )
        cache_options = await cache_key_options(self._asset) if self._cache is not None else None
        succeeded = 0
        for source in entries:
            try:
                await transform_one(
                    self._asset,
                    source,
                    cache=self._cache,
                    cache_options=cache_options,
                    force=True,
                )
                succeeded += 1
            except Exception:
                logger.exception("Transform failed. asset=%s path=%s", self._asset.name, source)
                if self._cache is not None:
                    self._cache.forget(source)
        if self._cache is not None:
            await self._cache.save()
        logger.info(
            "Partial change recompile finished. asset=%s succeeded=%d failed=%d",
            self._asset.name,
            succeeded,
            len(entries) - succeeded,
        )

    async def _remove_outputs(self, source: Path) -> None:
        dest = self._asset.dest_for(source)
        targets = [dest, dest.with_name(dest.name + ".map"), *self._asset.artifacts_for(dest)]
        for target in dict.fromkeys(targets):
            try:
                await asyncio.to_thread(target.unlink, missing_ok=True)
            except OSError:
                logger.warning("Failed to delete output. path=%s", target, exc_info=True)
        await asyncio.to_thread(self._prune_empty_dirs, dest.parent)
        if self._cache is not None:
            self._cache.forget(source)
            await self._cache.save()
        logger.debug("Outputs removed. asset=%s dest=%s", self._asset.name, dest)

    def _prune_empty_dirs(self, directory: Path) -> None:
        """Remove ``directory`` and its ancestors while empty, never ``dest_root`` itself."""
        dest_root = self._asset.dest_root
        while directory != dest_root and dest_root in directory.parents:
            try:
                directory.rmdir()
            except FileNotFoundError:
                pass
            except OSError:
                # Not empty.
                return
            directory = directory.parent
