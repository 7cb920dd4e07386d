from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import FrozenSet, List, Optional, Set

from asset_runner.pipeline.assets import AssetClass
from asset_runner.watch.events import (
    EntryAdded,
    EntryChanged,
    EntryRemoved,
    FileEvent,
    PartialChanged,
    WatchEvent,
)

logger = logging.getLogger(__name__)


class DependencyTracker:
    """
    Maintains the EntrySet of one asset class and classifies filesystem events.

    Include graphs are not tracked: a partial is assumed to feed every known entry, so a
    partial change always maps to the full EntrySet. Over-approximating the rebuild set is
    intentional; it can never miss an affected entry.
    """

    def __init__(self, asset: AssetClass) -> None:
        self._asset = asset
        self._entries: Set[Path] = set()

    @property
    def entries(self) -> FrozenSet[Path]:
        return frozenset(self._entries)

    def seed(self) -> int:
        self._entries = set(self._asset.scan_entries())
        logger.debug("Entry set seeded. asset=%s entries=%d", self._asset.name, len(self._entries))
        return len(self._entries)

    def add_entry(self, path: Path) -> None:
        self._entries.add(path)

    def remove_entry(self, path: Path) -> None:
        self._entries.discard(path)

    def classify(self, event: FileEvent) -> Optional[WatchEvent]:
        """Map a raw event to a typed one; None for paths this class does not own."""
        path = Path(os.path.abspath(event.path))
        if not self._asset.matches(path):
            return None

        if event.kind == "unlink":
            if path in self._entries or self._asset.mode == "files":
                return EntryRemoved(path)
            return PartialChanged(path, "unlink")

        if self._asset.is_entry(path):
            if event.kind == "add":
                return EntryAdded(path)
            return EntryChanged(path)
        return PartialChanged(path, event.kind)

    def affected_entries(self, partial: Path) -> List[Path]:
        _ = partial
        return sorted(self._entries)
