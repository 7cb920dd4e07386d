from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)


def _normalize(value: str) -> str:
    normalized = value.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


def matches_exclusion(relative_path: str, exclusions: Iterable[str]) -> bool:
    """
    Return True when ``relative_path`` is protected by one of ``exclusions``.

    A pattern protects the exact path, everything below it, and (with a trailing "/")
    the directory it names.
    """
    path = _normalize(relative_path)
    for raw_pattern in exclusions:
        pattern = _normalize(raw_pattern)
        if not pattern:
            continue
        if path == pattern:
            return True
        if pattern.endswith("/"):
            if path.startswith(pattern) or path + "/" == pattern:
                return True
            continue
        if path.startswith(pattern + "/"):
            return True
    return False


class CleanupEngine:
    """Removes stale build output while leaving excluded paths untouched."""

    async def clean(self, directories: Sequence[Path], *, base_dir: Path, exclusions: Sequence[str]) -> None:
        logger.info("Cleanup started. directories=%d", len(directories))
        if exclusions:
            logger.info("Cleanup exclusions: %s", ", ".join(exclusions))
        for directory in directories:
            await asyncio.to_thread(self._clean_directory, Path(directory), Path(base_dir), list(exclusions))
        logger.info("Cleanup completed.")

    def _clean_directory(self, directory: Path, base_dir: Path, exclusions: list[str]) -> None:
        if not exclusions:
            try:
                shutil.rmtree(directory)
            except FileNotFoundError:
                pass
            logger.info("Directory removed. path=%s", directory)
            return

        self._clean_recursive(directory, base_dir, exclusions)
        logger.info("Directory cleaned. path=%s", directory)

    def _clean_recursive(self, directory: Path, base_dir: Path, exclusions: list[str]) -> None:
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda e: e.name)
        except FileNotFoundError:
            return

        for entry in entries:
            full_path = Path(entry.path)
            relative_path = os.path.relpath(full_path, base_dir).replace(os.sep, "/")

            if matches_exclusion(relative_path, exclusions):
                logger.info("Excluded from cleanup. path=%s", relative_path)
                continue

            if entry.is_dir(follow_symlinks=False):
                self._clean_recursive(full_path, base_dir, exclusions)
                try:
                    if not any(full_path.iterdir()):
                        full_path.rmdir()
                except FileNotFoundError:
                    pass
            else:
                try:
                    full_path.unlink()
                except FileNotFoundError:
                    pass
