from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from asset_runner.cache.io import atomic_write_text

logger = logging.getLogger(__name__)

INDEX_STEM = "_index"


def write_partial_indexes(src_root: Path, *, suffix: str = ".scss") -> List[Path]:
    """
    Write an ``_index`` module into every subdirectory of ``src_root``.

    Each index forwards the partials of its directory plus the indexes of its child
    directories, so an entry stylesheet can ``@use "components"`` without listing files.
    Files are rewritten only when their content changes; returns the paths written.
    """
    written: List[Path] = []
    if not src_root.is_dir():
        return written
    for child in sorted(src_root.iterdir(), key=lambda p: p.name):
        if child.is_dir() and not child.name.startswith("."):
            _write_directory_index(child, suffix=suffix, written=written)
    if written:
        logger.info("Partial indexes updated. root=%s count=%d", src_root, len(written))
    return written


def _write_directory_index(directory: Path, *, suffix: str, written: List[Path]) -> bool:
    index_name = INDEX_STEM + suffix
    modules: List[str] = []
    for child in sorted(directory.iterdir(), key=lambda p: p.name):
        if child.name.startswith("."):
            continue
        if child.is_dir():
            if _write_directory_index(child, suffix=suffix, written=written):
                modules.append(child.name)
        elif child.is_file() and child.suffix == suffix and child.name != index_name:
            modules.append(child.stem.removeprefix("_"))

    index_path = directory / index_name
    if not modules and not index_path.exists():
        return False

    content = "".join(f'@forward "{module}";\n' for module in modules)
    try:
        existing = index_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        existing = None
    if existing != content:
        atomic_write_text(index_path, content)
        written.append(index_path)
    return bool(modules)
