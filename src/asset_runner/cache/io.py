from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict

from asset_runner.cache.models import CacheEntry, CacheManifest, ManifestVersion

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


def atomic_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp_path.replace(path)


def atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


def _encode_entry(entry: CacheEntry) -> dict:
    return {
        "hash": entry.hash,
        "distPath": entry.dist_path,
        "timestamp": entry.timestamp,
    }


def _decode_entry(payload: dict) -> CacheEntry:
    return CacheEntry(
        hash=str(payload["hash"]),
        dist_path=str(payload.get("distPath", "")),
        timestamp=str(payload.get("timestamp", "")),
    )


def encode_manifest(manifest: CacheManifest) -> dict:
    return {
        "version": manifest.version,
        "optionsHash": manifest.options_hash,
        "files": {source: _encode_entry(entry) for source, entry in manifest.files.items()},
    }


def decode_manifest(payload: dict) -> CacheManifest:
    if not isinstance(payload, dict):
        raise ValueError(f"Manifest must be a JSON object, got: {type(payload).__name__}")
    files_payload = payload.get("files") or {}
    if not isinstance(files_payload, dict):
        raise ValueError("Manifest 'files' must be a JSON object")
    files: Dict[str, CacheEntry] = {}
    for source, entry_payload in files_payload.items():
        files[source] = _decode_entry(entry_payload)
    options_hash = payload.get("optionsHash")
    return CacheManifest(
        version=str(payload.get("version", ManifestVersion)),
        options_hash=str(options_hash) if options_hash is not None else None,
        files=files,
    )


def empty_manifest() -> CacheManifest:
    return CacheManifest(version=ManifestVersion, options_hash=None, files={})


def read_manifest_file(path: Path) -> CacheManifest:
    """Load a manifest; a missing, corrupt or foreign-version file yields an empty one."""
    if not path.exists():
        logger.info("Cache manifest not found, starting empty. path=%s", path)
        return empty_manifest()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        manifest = decode_manifest(payload)
        if manifest.version != ManifestVersion:
            logger.warning(
                "Cache manifest version mismatch, starting fresh. path=%s expected=%s actual=%s",
                path,
                ManifestVersion,
                manifest.version,
            )
            return empty_manifest()
        return manifest
    except Exception:
        logger.exception("Failed to read cache manifest, starting fresh. path=%s", path)
        return empty_manifest()
