import tempfile
import unittest
from pathlib import Path

from tinyyolo_kit.errors import InvalidClassIndex
from tinyyolo_kit.labels import attach_labels, check_label_store, load_labels
from tinyyolo_kit.types import Detection, Rect
from tinyyolo_kit.visualize import color_for_class


class TestLabels(unittest.TestCase):
    def test_load_names_file(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "coco.names"
        path.write_text("person\nbicycle\n\ncar\n\n", encoding="utf-8")
        self.assertEqual(load_labels(path), ["person", "bicycle", "", "car"])

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_labels(Path(tempfile.gettempdir()) / "missing.names")

    def test_short_label_store_rejected(self) -> None:
        check_label_store(["a", "b", "c"], num_classes=3)
        with self.assertRaises(InvalidClassIndex):
            check_label_store(["a", "b"], num_classes=3)

    def test_attach_labels(self) -> None:
        det = Detection(class_index=1, confidence=0.9, rect=Rect(0, 0, 1, 1))
        (labeled,) = attach_labels([det], ["person", "bicycle"])
        self.assertEqual(labeled.class_name, "bicycle")
        self.assertEqual(labeled.color, color_for_class(1))
        self.assertIs(labeled.detection, det)

    def test_attach_labels_unknown_index(self) -> None:
        det = Detection(class_index=2, confidence=0.9, rect=Rect(0, 0, 1, 1))
        with self.assertRaises(InvalidClassIndex):
            attach_labels([det], ["person", "bicycle"])


class TestColors(unittest.TestCase):
    def test_deterministic_and_in_range(self) -> None:
        for idx in range(100):
            color = color_for_class(idx)
            self.assertEqual(color, color_for_class(idx))
            self.assertTrue(all(0 <= c <= 255 for c in color))

    def test_palette_wraps_with_smaller_shift(self) -> None:
        # Class 9 -> slot 10: red (BGR), second pass, +40%.
        self.assertEqual(color_for_class(9), (102, 102, 255))
        # Class 19 -> slot 20: red again, third pass, +30%.
        self.assertEqual(color_for_class(19), (76, 76, 255))


if __name__ == "__main__":
    unittest.main()
