from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from asset_runner.config.models import AssetKind, AssetMode, AssetSettings
from asset_runner.transforms import Transform, load_transform


def _absolute(path: Path) -> Path:
    return Path(os.path.abspath(path))


def _is_hidden(relative: Path) -> bool:
    return any(part.startswith(".") for part in relative.parts)


@dataclass(frozen=True, slots=True)
class AssetClass:
    """
    A family of sources sharing one transform, resolved once from configuration.

    In ``entries`` mode only root-level files without the partial prefix produce output;
    everything else under the source root is a partial. In ``files`` mode every matching
    file maps one-to-one onto the destination tree.
    """

    name: str
    kind: AssetKind
    mode: AssetMode
    source_root: Path
    dest_root: Path
    pattern: str
    partial_prefix: Optional[str]
    dest_suffix: Optional[str]
    options: BaseModel
    transform: Transform
    use_cache: bool
    clean: bool

    @classmethod
    def from_settings(cls, name: str, settings: AssetSettings, *, project_root: Path) -> AssetClass:
        root = _absolute(project_root)
        return cls(
            name=name,
            kind=settings.kind,
            mode=settings.mode,
            source_root=_absolute(root / settings.src),
            dest_root=_absolute(root / settings.dist),
            pattern=settings.pattern,
            partial_prefix=getattr(settings, "partial_prefix", None),
            dest_suffix=settings.dest_suffix,
            options=settings.options,
            transform=load_transform(settings.transform),
            use_cache=settings.use_cache,
            clean=settings.clean,
        )

    def relative(self, path: Path) -> Optional[Path]:
        try:
            return _absolute(path).relative_to(self.source_root)
        except ValueError:
            return None

    def matches(self, path: Path) -> bool:
        """True when ``path`` is a non-hidden file name this class is responsible for."""
        relative = self.relative(path)
        if relative is None or not relative.parts:
            return False
        if _is_hidden(relative):
            return False
        return fnmatch.fnmatch(relative.name, self.pattern)

    def is_entry(self, path: Path) -> bool:
        if not self.matches(path):
            return False
        if self.mode == "files":
            return True
        relative = self.relative(path)
        if relative is None or len(relative.parts) != 1:
            return False
        if self.partial_prefix and relative.name.startswith(self.partial_prefix):
            return False
        return True

    def dest_for(self, source: Path) -> Path:
        relative = self.relative(source)
        if relative is None:
            raise ValueError(f"Path is outside the source root of '{self.name}': {source}")
        dest = self.dest_root / relative
        if self.dest_suffix:
            dest = dest.with_suffix(self.dest_suffix)
        return dest

    def artifacts_for(self, dest: Path) -> List[Path]:
        """Secondary outputs the transform is expected to write next to ``dest``."""
        secondary = getattr(self.options, "secondary_artifacts", None)
        if secondary is None:
            return []
        return list(secondary(dest))

    def scan_entries(self) -> List[Path]:
        """Entry files currently on disk, sorted for deterministic processing order."""
        if not self.source_root.is_dir():
            return []
        if self.mode == "entries":
            candidates = (p for p in self.source_root.iterdir() if p.is_file())
        else:
            candidates = (p for p in self.source_root.rglob("*") if p.is_file())
        return sorted(p for p in candidates if self.is_entry(p))
