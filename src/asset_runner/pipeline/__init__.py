"""Cleanup-then-build pipeline for configured asset classes."""

from __future__ import annotations

from asset_runner.pipeline.assets import AssetClass
from asset_runner.pipeline.cleanup import CleanupEngine, matches_exclusion
from asset_runner.pipeline.orchestrator import BuildFailedError, BuildReport, TaskOrchestrator
from asset_runner.pipeline.session import BuildSession, resolve_assets

__all__ = [
    "AssetClass",
    "BuildFailedError",
    "BuildReport",
    "BuildSession",
    "CleanupEngine",
    "TaskOrchestrator",
    "matches_exclusion",
    "resolve_assets",
]
