from __future__ import annotations

import importlib
import inspect
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel


class Transform(Protocol):
    """
    Format-specific build step for one source file.

    Implementations write ``dest`` (and optionally secondary artifacts next to it such as
    ``<dest>.map``), must be deterministic for a given input and options, and raise on
    failure. The pipeline never inspects the file contents itself.
    """

    async def __call__(self, source: Path, dest: Path, options: BaseModel) -> None:
        ...


BUILTIN_TRANSFORMS = ("copy",)


def load_transform(spec: str) -> Transform:
    """
    Resolve a transform from configuration.

    ``spec`` is either a builtin name or a ``package.module:callable`` import path.
    Resolution failures raise ``ValueError`` so they surface as configuration errors.
    """
    raw = spec.strip()
    if raw == "copy":
        from asset_runner.transforms.copy import copy_transform

        return copy_transform

    module_name, sep, attr_path = raw.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(
            f"Invalid transform '{spec}'. Expected one of {list(BUILTIN_TRANSFORMS)} or 'package.module:callable'."
        )
    try:
        target = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Transform module could not be imported: {module_name}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise ValueError(f"Transform attribute not found: {raw}") from e

    if not callable(target):
        raise ValueError(f"Transform is not callable: {raw}")
    if not (inspect.iscoroutinefunction(target) or inspect.iscoroutinefunction(getattr(target, "__call__", None))):
        raise ValueError(f"Transform must be an async callable: {raw}")
    return target
