from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel

_CHUNK_SIZE = 1024 * 1024


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_rfc3339(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def hash_file(path: Path) -> str:
    """Return the SHA-256 hex digest of the raw bytes of ``path``."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def hash_options(options: BaseModel | Mapping[str, Any]) -> str:
    """
    Digest of a transform option set.

    Keys are serialized sorted at every depth so that key order never changes the hash.
    """
    if isinstance(options, BaseModel):
        payload = options.model_dump(mode="json")
    else:
        payload = dict(options)
    normalized = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
