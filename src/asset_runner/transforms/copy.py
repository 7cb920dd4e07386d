from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def _copy_file(source: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)


async def copy_transform(source: Path, dest: Path, options: BaseModel) -> None:
    """Copy ``source`` to ``dest`` unchanged; the default transform for every asset kind."""
    _ = options
    await asyncio.to_thread(_copy_file, source, dest)
    logger.debug("File copied. source=%s dest=%s", source, dest)
