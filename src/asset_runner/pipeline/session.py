from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from asset_runner.cache.store import CacheStore
from asset_runner.config.models import AppConfig
from asset_runner.pipeline.assets import AssetClass

logger = logging.getLogger(__name__)


def resolve_assets(config: AppConfig) -> List[AssetClass]:
    """Resolve every configured asset class; raises before any I/O on a bad transform."""
    project_root = Path(config.app.project_root)
    return [
        AssetClass.from_settings(name, settings, project_root=project_root)
        for name, settings in config.assets.items()
    ]


@dataclass(slots=True)
class BuildSession:
    """Resolved asset classes plus the cache stores they own for one build/watch run."""

    config: AppConfig
    assets: List[AssetClass]
    caches: Dict[str, CacheStore] = field(default_factory=dict)

    @property
    def project_root(self) -> Path:
        return Path(self.config.app.project_root).absolute()

    @classmethod
    async def open(cls, config: AppConfig) -> BuildSession:
        assets = resolve_assets(config)
        session = cls(config=config, assets=assets)
        cache_root = session.project_root / config.app.cache_dir
        for asset in assets:
            if not asset.use_cache:
                continue
            store = CacheStore(cache_dir=cache_root / asset.name)
            await store.initialize()
            session.caches[asset.name] = store
        logger.info(
            "Build session opened. assets=%s cached=%s",
            ",".join(a.name for a in assets),
            ",".join(sorted(session.caches)),
        )
        return session

    def cache_for(self, asset: AssetClass) -> CacheStore | None:
        return self.caches.get(asset.name)

    async def save_caches(self) -> None:
        if self.caches:
            await asyncio.gather(*(store.save() for store in self.caches.values()))

    async def clear_caches(self) -> None:
        cache_root = self.project_root / self.config.app.cache_dir
        stores = [
            self.caches.get(asset.name) or CacheStore(cache_dir=cache_root / asset.name)
            for asset in self.assets
        ]
        await asyncio.gather(*(store.clear() for store in stores))
