"""Bridges watchdog's observer thread onto the asyncio watch controllers."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from asset_runner.pipeline.session import BuildSession
from asset_runner.watch.controller import WatchController
from asset_runner.watch.debounce import Debouncer
from asset_runner.watch.events import FileEvent, FileEventKind

logger = logging.getLogger(__name__)


def create_observer(use_polling: bool) -> BaseObserver:
    """Create a watchdog observer based on configuration."""
    if use_polling:
        from watchdog.observers.polling import PollingObserver

        logger.info("Using polling observer for filesystem events.")
        return PollingObserver()
    return Observer()


class AssetEventHandler(FileSystemEventHandler):
    """
    Runs on the observer thread; only hands events to the loop.

    Moves are delivered as unlink of the old path followed by add of the new one.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[FileEvent]) -> None:
        super().__init__()
        self._loop = loop
        self._queue = queue

    def _emit(self, kind: FileEventKind, raw_path: str | bytes) -> None:
        event = FileEvent(kind=kind, path=Path(os.fsdecode(raw_path)))
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit("add", event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit("change", event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit("unlink", event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit("unlink", event.src_path)
        self._emit("add", event.dest_path)


class WatchSession:
    """One WatchController per asset class, fed in emission order from a watchdog observer."""

    def __init__(self, *, session: BuildSession, debouncer: Optional[Debouncer] = None) -> None:
        self._session = session
        self._debouncer = debouncer or Debouncer(delay_seconds=session.config.app.debounce_seconds)
        self._observer: Optional[BaseObserver] = None
        self._controllers: List[WatchController] = []
        self._consumers: List[asyncio.Task] = []
        self._stop_event = asyncio.Event()

    @property
    def controllers(self) -> List[WatchController]:
        return list(self._controllers)

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        observer = create_observer(self._session.config.app.use_polling)
        for asset in self._session.assets:
            if not asset.source_root.is_dir():
                logger.warning("Source directory missing, not watching. asset=%s src=%s", asset.name, asset.source_root)
                continue
            controller = WatchController(
                asset=asset,
                debouncer=self._debouncer,
                cache=self._session.cache_for(asset),
            )
            await controller.start()
            queue: asyncio.Queue[FileEvent] = asyncio.Queue()
            observer.schedule(AssetEventHandler(loop, queue), str(asset.source_root), recursive=True)
            self._controllers.append(controller)
            self._consumers.append(asyncio.create_task(self._consume(controller, queue)))
        observer.start()
        self._observer = observer
        logger.info("File watching started. classes=%d", len(self._controllers))

    async def wait(self) -> None:
        await self._stop_event.wait()

    async def stop(self) -> None:
        self._stop_event.set()
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None
        for task in self._consumers:
            task.cancel()
        await asyncio.gather(*self._consumers, return_exceptions=True)
        self._consumers = []
        for controller in self._controllers:
            await controller.close()
        await self._debouncer.drain()
        await self._session.save_caches()
        logger.info("File watching stopped.")

    async def _consume(self, controller: WatchController, queue: asyncio.Queue[FileEvent]) -> None:
        while True:
            event = await queue.get()
            try:
                await controller.handle(event)
            except Exception:
                logger.exception("Watch event handling failed. asset=%s event=%s", controller.asset.name, event)
