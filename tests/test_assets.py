import tempfile
import unittest
from pathlib import Path

from asset_runner.config.models import (
    CopyAssetSettings,
    ImageAssetSettings,
    ScriptAssetSettings,
    StyleAssetSettings,
)
from asset_runner.pipeline.assets import AssetClass
from asset_runner.transforms import copy_transform


class AssetClassificationTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.styles = AssetClass.from_settings(
            "css",
            StyleAssetSettings(kind="styles", src="source/scss", dist="public/css"),
            project_root=self.root,
        )
        self.src = self.styles.source_root

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_root_level_plain_file_is_entry(self) -> None:
        self.assertTrue(self.styles.is_entry(self.src / "style.scss"))

    def test_root_level_underscore_file_is_partial(self) -> None:
        self.assertTrue(self.styles.matches(self.src / "_base.scss"))
        self.assertFalse(self.styles.is_entry(self.src / "_base.scss"))

    def test_nested_file_is_partial_regardless_of_prefix(self) -> None:
        self.assertFalse(self.styles.is_entry(self.src / "components" / "_card.scss"))
        self.assertFalse(self.styles.is_entry(self.src / "components" / "card.scss"))
        self.assertTrue(self.styles.matches(self.src / "components" / "card.scss"))

    def test_foreign_and_hidden_files_are_ignored(self) -> None:
        self.assertFalse(self.styles.matches(self.src / "notes.txt"))
        self.assertFalse(self.styles.matches(self.src / ".draft.scss"))
        self.assertFalse(self.styles.matches(self.src / ".cache" / "x.scss"))
        self.assertFalse(self.styles.matches(self.root / "elsewhere" / "style.scss"))

    def test_destination_uses_class_suffix(self) -> None:
        self.assertEqual(self.styles.dest_for(self.src / "style.scss"), self.styles.dest_root / "style.css")
        with self.assertRaises(ValueError):
            self.styles.dest_for(self.root / "style.scss")

    def test_source_map_is_an_expected_artifact(self) -> None:
        scripts = AssetClass.from_settings(
            "js",
            ScriptAssetSettings(kind="scripts", src="js", dist="out/js", options={"source_map": True}),
            project_root=self.root,
        )
        dest = scripts.dest_root / "main.js"
        self.assertEqual(scripts.dest_for(scripts.source_root / "main.js"), dest)
        self.assertEqual(scripts.artifacts_for(dest), [scripts.dest_root / "main.js.map"])
        self.assertEqual(self.styles.artifacts_for(self.styles.dest_root / "style.css"), [])

    def test_scan_entries_is_non_recursive_in_entries_mode(self) -> None:
        (self.src / "components").mkdir(parents=True)
        for name in ("b.scss", "a.scss", "_base.scss", "components/card.scss", "readme.md"):
            (self.src / name).write_text("", encoding="utf-8")

        self.assertEqual(self.styles.scan_entries(), [self.src / "a.scss", self.src / "b.scss"])

    def test_files_mode_treats_every_file_as_entry(self) -> None:
        images = AssetClass.from_settings(
            "images",
            ImageAssetSettings(kind="images", src="img", dist="out/img"),
            project_root=self.root,
        )
        (images.source_root / "icons").mkdir(parents=True)
        (images.source_root / "icons" / "_x.png").write_bytes(b"")
        (images.source_root / "hero.jpg").write_bytes(b"")
        (images.source_root / ".DS_Store").write_bytes(b"")

        self.assertEqual(
            images.scan_entries(),
            [images.source_root / "hero.jpg", images.source_root / "icons" / "_x.png"],
        )
        self.assertEqual(
            images.artifacts_for(images.dest_root / "hero.jpg"),
            [images.dest_root / "hero.webp"],
        )

    def test_builtin_copy_transform_is_resolved(self) -> None:
        fonts = AssetClass.from_settings(
            "fonts",
            CopyAssetSettings(kind="copy", src="fonts", dist="out/fonts"),
            project_root=self.root,
        )
        self.assertIs(fonts.transform, copy_transform)
        self.assertEqual(fonts.mode, "files")
        self.assertIsNone(fonts.partial_prefix)


if __name__ == "__main__":
    unittest.main()
