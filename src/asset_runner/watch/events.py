from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Union

FileEventKind = Literal["add", "change", "unlink"]


@dataclass(frozen=True, slots=True)
class FileEvent:
    """Raw filesystem notification, before classification."""

    kind: FileEventKind
    path: Path


@dataclass(frozen=True, slots=True)
class EntryAdded:
    path: Path


@dataclass(frozen=True, slots=True)
class EntryChanged:
    path: Path


@dataclass(frozen=True, slots=True)
class EntryRemoved:
    path: Path


@dataclass(frozen=True, slots=True)
class PartialChanged:
    path: Path
    kind: FileEventKind


WatchEvent = Union[EntryAdded, EntryChanged, EntryRemoved, PartialChanged]
