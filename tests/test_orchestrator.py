import dataclasses
import tempfile
import unittest
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel

from asset_runner.config.models import AppConfig
from asset_runner.pipeline import BuildFailedError, BuildSession, CleanupEngine, TaskOrchestrator


class RecordingTransform:
    def __init__(self, *, fail_on: tuple[str, ...] = ()) -> None:
        self.calls: list[str] = []
        self.fail_on = set(fail_on)

    async def __call__(self, source: Path, dest: Path, options: BaseModel) -> None:
        self.calls.append(source.name)
        if source.name in self.fail_on:
            raise RuntimeError(f"cannot compile {source.name}")
        dest.write_bytes(source.read_bytes())


class FailingCleanup(CleanupEngine):
    async def clean(self, directories: Sequence[Path], *, base_dir: Path, exclusions: Sequence[str]) -> None:
        raise PermissionError("dist is read-only")


class TaskOrchestratorTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        for relative in ("source/scss/style.scss", "source/scss/_base.scss", "source/js/main.js", "source/js/admin.js"):
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"/* {relative} */", encoding="utf-8")

    async def asyncTearDown(self) -> None:
        self._tmp.cleanup()

    def _config(self, **overrides) -> AppConfig:
        data = {
            "app": {"project_root": str(self.root), "cache_dir": ".cache"},
            "assets": {
                "css": {"kind": "styles", "src": "source/scss", "dist": "public/css"},
                "scripts": {"kind": "scripts", "src": "source/js", "dist": "public/js"},
            },
        }
        data.update(overrides)
        return AppConfig.model_validate(data)

    async def _session(self, config: AppConfig, transforms: dict[str, RecordingTransform]) -> BuildSession:
        session = await BuildSession.open(config)
        session.assets = [
            dataclasses.replace(asset, transform=transforms[asset.name]) if asset.name in transforms else asset
            for asset in session.assets
        ]
        return session

    async def test_failing_class_does_not_stop_others(self) -> None:
        css = RecordingTransform()
        scripts = RecordingTransform(fail_on=("admin.js",))
        session = await self._session(self._config(), {"css": css, "scripts": scripts})

        with self.assertLogs("asset_runner.pipeline.tasks", level="ERROR"):
            with self.assertRaises(BuildFailedError) as ctx:
                await TaskOrchestrator(session=session).run_build()

        self.assertEqual(set(ctx.exception.failures), {"scripts"})
        self.assertIsInstance(ctx.exception.failures["scripts"], RuntimeError)
        self.assertEqual(css.calls, ["style.scss"])
        self.assertTrue((self.root / "public" / "css" / "style.css").exists())
        # Entries run in sorted order and the first failure aborts the class.
        self.assertEqual(scripts.calls, ["admin.js"])
        self.assertFalse((self.root / "public" / "js" / "main.js").exists())

    async def test_cleanup_runs_before_build(self) -> None:
        stale = self.root / "public" / "css" / "old.css"
        stale.parent.mkdir(parents=True)
        stale.write_text("", encoding="utf-8")
        session = await self._session(self._config(), {"css": RecordingTransform(), "scripts": RecordingTransform()})

        report = await TaskOrchestrator(session=session).run_build()

        self.assertFalse(stale.exists())
        self.assertTrue((self.root / "public" / "css" / "style.css").exists())
        self.assertEqual(report.processed, 3)
        self.assertEqual(report.skipped, 0)

    async def test_cached_class_output_survives_cleanup_and_is_skipped(self) -> None:
        config = self._config(
            assets={
                "scripts": {"kind": "scripts", "src": "source/js", "dist": "public/js", "use_cache": True},
            },
            cleanup={"exclude_files": ["public/keep.txt"]},
        )
        keep = self.root / "public" / "keep.txt"
        keep.parent.mkdir(parents=True)
        keep.write_text("keep", encoding="utf-8")

        first = RecordingTransform()
        session = await self._session(config, {"scripts": first})
        orchestrator = TaskOrchestrator(session=session)
        self.assertEqual(orchestrator.exclusions(), ["public/keep.txt", "public/js/"])
        report = await orchestrator.run_build()
        self.assertEqual(report.processed, 2)
        self.assertTrue((self.root / ".cache" / "scripts" / "manifest.json").exists())

        second = RecordingTransform()
        session = await self._session(config, {"scripts": second})
        report = await TaskOrchestrator(session=session).run_build()

        self.assertEqual(second.calls, [])
        self.assertEqual(report.skipped, 2)
        self.assertTrue((self.root / "public" / "js" / "main.js").exists())
        self.assertTrue(keep.exists())

    async def test_cleanup_failure_aborts_before_any_transform(self) -> None:
        css = RecordingTransform()
        scripts = RecordingTransform()
        session = await self._session(self._config(), {"css": css, "scripts": scripts})

        with self.assertLogs("asset_runner.pipeline.tasks", level="ERROR"):
            with self.assertRaises(PermissionError):
                await TaskOrchestrator(session=session, cleanup=FailingCleanup()).run_build()

        self.assertEqual(css.calls, [])
        self.assertEqual(scripts.calls, [])

    async def test_missing_source_root_builds_nothing(self) -> None:
        config = self._config(assets={"img": {"kind": "images", "src": "source/img", "dist": "public/img"}})
        session = await BuildSession.open(config)

        with self.assertLogs("asset_runner.pipeline.tasks", level="WARNING"):
            report = await TaskOrchestrator(session=session).run_build()

        self.assertEqual(report.processed, 0)
        self.assertEqual(report.stats["img"].asset, "img")


if __name__ == "__main__":
    unittest.main()
