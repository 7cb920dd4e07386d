"""Transform contract plus the builtin transforms shipped with the runner."""

from __future__ import annotations

from asset_runner.transforms.base import BUILTIN_TRANSFORMS, Transform, load_transform
from asset_runner.transforms.copy import copy_transform
from asset_runner.transforms.partial_index import write_partial_indexes

__all__ = [
    "BUILTIN_TRANSFORMS",
    "Transform",
    "copy_transform",
    "load_transform",
    "write_partial_indexes",
]
