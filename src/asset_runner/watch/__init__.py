"""Watch mode: event classification, debouncing and per-class controllers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from asset_runner.watch.controller import WatchController, WatchState
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

if TYPE_CHECKING:
    from asset_runner.watch.observer import WatchSession

__all__ = [
    "Debouncer",
    "DependencyTracker",
    "EntryAdded",
    "EntryChanged",
    "EntryRemoved",
    "FileEvent",
    "PartialChanged",
    "WatchController",
    "WatchEvent",
    "WatchSession",
    "WatchState",
]


def __getattr__(name: str):
    if name == "WatchSession":
        from asset_runner.watch.observer import WatchSession as _WatchSession

        return _WatchSession
    raise AttributeError(name)
