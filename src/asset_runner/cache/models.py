from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

ManifestVersion = "1.0.0"


@dataclass(slots=True)
class CacheEntry:
    hash: str
    dist_path: str
    timestamp: str


@dataclass(slots=True)
class CacheManifest:
    version: str = ManifestVersion
    options_hash: Optional[str] = None
    files: Dict[str, CacheEntry] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CacheStats:
    total_files: int
    options_hash: Optional[str]
    version: str
