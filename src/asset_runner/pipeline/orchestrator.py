from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from asset_runner.pipeline.cleanup import CleanupEngine
from asset_runner.pipeline.session import BuildSession
from asset_runner.pipeline.tasks import TaskStats, build_asset_class, run_task

logger = logging.getLogger(__name__)


class BuildFailedError(RuntimeError):
    """Raised after every build task settled when at least one of them failed."""

    def __init__(self, failures: Mapping[str, BaseException]) -> None:
        self.failures: Dict[str, BaseException] = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"Build failed for asset classes: {names}")


@dataclass(slots=True)
class BuildReport:
    stats: Dict[str, TaskStats] = field(default_factory=dict)

    @property
    def processed(self) -> int:
        return sum(s.processed for s in self.stats.values())

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.stats.values())


class TaskOrchestrator:
    def __init__(self, *, session: BuildSession, cleanup: Optional[CleanupEngine] = None) -> None:
        self._session = session
        self._cleanup = cleanup or CleanupEngine()

    def exclusions(self) -> List[str]:
        """Configured exclusions plus the output root of every class whose cache is active."""
        project_root = self._session.project_root
        exclusions = list(self._session.config.cleanup.exclude_files)
        for asset in self._session.assets:
            if asset.name not in self._session.caches:
                continue
            relative = os.path.relpath(asset.dest_root, project_root).replace(os.sep, "/")
            exclusions.append(f"{relative}/")
            logger.info("Cache active, output excluded from cleanup. asset=%s dist=%s", asset.name, relative)
        return exclusions

    async def run_build(self) -> BuildReport:
        session = self._session
        directories = [asset.dest_root for asset in session.assets if asset.clean]

        # Cleanup must finish before any build task writes into the same trees.
        await run_task(
            "cleanup",
            lambda: self._cleanup.clean(directories, base_dir=session.project_root, exclusions=self.exclusions()),
        )

        names = [asset.name for asset in session.assets]
        results = await asyncio.gather(
            *(
                run_task(
                    f"build:{asset.name}",
                    lambda asset=asset: build_asset_class(asset, cache=session.cache_for(asset)),
                )
                for asset in session.assets
            ),
            return_exceptions=True,
        )

        await session.save_caches()

        report = BuildReport()
        failures: Dict[str, BaseException] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                failures[name] = result
            else:
                report.stats[name] = result

        if failures:
            raise BuildFailedError(failures)

        logger.info("Build completed. processed=%d skipped=%d", report.processed, report.skipped)
        return report
