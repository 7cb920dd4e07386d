import tempfile
import unittest
from pathlib import Path

from asset_runner.transforms import write_partial_indexes


class PartialIndexTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.src = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, relative: str) -> None:
        path = self.src / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")

    def test_forwards_partials_and_nested_indexes(self) -> None:
        self._write("style.scss")
        self._write("components/_card.scss")
        self._write("components/_button.scss")
        self._write("components/forms/_input.scss")
        self._write("components/notes.md")

        written = write_partial_indexes(self.src)

        self.assertEqual(
            sorted(written),
            sorted([self.src / "components" / "_index.scss", self.src / "components" / "forms" / "_index.scss"]),
        )
        self.assertEqual(
            (self.src / "components" / "_index.scss").read_text(encoding="utf-8"),
            '@forward "button";\n@forward "card";\n@forward "forms";\n',
        )
        self.assertEqual(
            (self.src / "components" / "forms" / "_index.scss").read_text(encoding="utf-8"),
            '@forward "input";\n',
        )
        self.assertFalse((self.src / "_index.scss").exists())

    def test_unchanged_indexes_are_not_rewritten(self) -> None:
        self._write("base/_reset.scss")
        self.assertEqual(len(write_partial_indexes(self.src)), 1)
        self.assertEqual(write_partial_indexes(self.src), [])

        self._write("base/_type.scss")
        self.assertEqual(write_partial_indexes(self.src), [self.src / "base" / "_index.scss"])

    def test_missing_root_writes_nothing(self) -> None:
        self.assertEqual(write_partial_indexes(self.src / "missing"), [])


if __name__ == "__main__":
    unittest.main()
