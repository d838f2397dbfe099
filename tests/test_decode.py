import unittest

import numpy as np

from tinyyolo_kit.decode import anchor_records, decode_candidates, floats_from_bytes
from tinyyolo_kit.errors import ShapeMismatch


def _record(box, objectness, scores):
    return [*box, objectness, *scores]


class TestFloatsFromBytes(unittest.TestCase):
    def test_little_and_big_endian(self) -> None:
        values = np.array([1.5, -2.0, 100.25], dtype=np.float32)
        little = floats_from_bytes(values.astype("<f4").tobytes(), byte_order="little")
        big = floats_from_bytes(values.astype(">f4").tobytes(), byte_order="big")
        self.assertTrue(np.array_equal(little, values))
        self.assertTrue(np.array_equal(big, values))
        self.assertEqual(little.dtype, np.float32)

    def test_result_is_an_owned_copy(self) -> None:
        data = bytearray(np.array([1.0, 2.0], dtype="<f4").tobytes())
        floats = floats_from_bytes(data)
        data[:] = bytes(len(data))
        self.assertTrue(np.array_equal(floats, np.array([1.0, 2.0], dtype=np.float32)))

    def test_partial_float_rejected(self) -> None:
        with self.assertRaises(ShapeMismatch):
            floats_from_bytes(b"\x00\x00\x80\x3f\x00")

    def test_unknown_byte_order_rejected(self) -> None:
        with self.assertRaises(ValueError):
            floats_from_bytes(b"\x00" * 4, byte_order="middle")


class TestAnchorRecords(unittest.TestCase):
    def test_reshapes_to_anchor_stride(self) -> None:
        records = anchor_records(np.zeros(3 * 7), num_classes=2)
        self.assertEqual(records.shape, (3, 7))

    def test_length_not_multiple_of_stride(self) -> None:
        with self.assertRaises(ShapeMismatch):
            anchor_records(np.zeros(3 * 7 + 1), num_classes=2)

    def test_num_anchors_disagrees_with_length(self) -> None:
        with self.assertRaises(ShapeMismatch):
            anchor_records(np.zeros(3 * 7), num_classes=2, num_anchors=4)

    def test_num_classes_must_be_positive(self) -> None:
        with self.assertRaises(ShapeMismatch):
            anchor_records(np.zeros(10), num_classes=0)

    def test_shape_error_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            anchor_records(np.zeros(8), num_classes=2)


class TestDecodeCandidates(unittest.TestCase):
    def test_best_class_and_raw_box(self) -> None:
        buf = _record((50, 60, 10, 20), 0.9, (0.1, 0.7, 0.2))
        cands = decode_candidates(buf, num_classes=3, objectness_threshold=0.3)
        self.assertEqual(len(cands), 1)
        c = cands[0]
        self.assertEqual(c.class_index, 1)
        # Class score alone, not objectness * class score.
        self.assertAlmostEqual(c.confidence, 0.7)
        self.assertEqual((c.rect.x, c.rect.y, c.rect.w, c.rect.h), (50.0, 60.0, 10.0, 20.0))

    def test_objectness_gate_is_strict(self) -> None:
        buf = _record((0, 0, 1, 1), 0.5, (0.9,)) + _record((0, 0, 1, 1), 0.75, (0.9,))
        cands = decode_candidates(buf, num_classes=1, objectness_threshold=0.5)
        self.assertEqual(len(cands), 1)

    def test_no_positive_class_score_yields_nothing(self) -> None:
        buf = _record((0, 0, 1, 1), 0.9, (0.0, 0.0)) + _record((0, 0, 1, 1), 0.9, (-0.5, -0.1))
        self.assertEqual(decode_candidates(buf, num_classes=2, objectness_threshold=0.3), [])

    def test_tied_class_scores_pick_lowest_index(self) -> None:
        buf = _record((0, 0, 1, 1), 0.9, (0.1, 0.6, 0.6))
        cands = decode_candidates(buf, num_classes=3, objectness_threshold=0.3)
        self.assertEqual(cands[0].class_index, 1)

    def test_nan_class_score_never_wins(self) -> None:
        buf = _record((0, 0, 1, 1), 0.9, (float("nan"), 0.4))
        cands = decode_candidates(buf, num_classes=2, objectness_threshold=0.3)
        self.assertEqual(len(cands), 1)
        self.assertEqual(cands[0].class_index, 1)

    def test_out_of_range_values_pass_through(self) -> None:
        buf = _record((-5, 900, 2000, -1), 3.0, (1.7, 0.0))
        cands = decode_candidates(buf, num_classes=2, objectness_threshold=0.3)
        self.assertAlmostEqual(cands[0].confidence, 1.7)
        self.assertEqual(cands[0].rect.w, 2000.0)

    def test_anchor_order_preserved(self) -> None:
        buf = (
            _record((1, 1, 1, 1), 0.9, (0.2, 0.0))
            + _record((2, 2, 1, 1), 0.1, (0.9, 0.0))
            + _record((3, 3, 1, 1), 0.9, (0.0, 0.95))
        )
        cands = decode_candidates(buf, num_classes=2, objectness_threshold=0.3)
        self.assertEqual([c.rect.x for c in cands], [1.0, 3.0])
        self.assertEqual([c.class_index for c in cands], [0, 1])

    def test_decodes_raw_bytes(self) -> None:
        arr = np.array(_record((100, 100, 50, 50), 0.9, (0.0, 0.8)), dtype=">f4")
        cands = decode_candidates(arr.tobytes(), num_classes=2, objectness_threshold=0.3, byte_order="big")
        self.assertEqual(len(cands), 1)
        self.assertAlmostEqual(cands[0].confidence, 0.8, places=6)

    def test_float_precision_preserved(self) -> None:
        f32 = anchor_records(np.zeros(7, dtype=np.float32), num_classes=2)
        ints = anchor_records(np.zeros(7, dtype=np.int32), num_classes=2)
        self.assertEqual(f32.dtype, np.float32)
        self.assertEqual(ints.dtype, np.float64)

    def test_batch_axis_is_flattened(self) -> None:
        buf = np.array([_record((0, 0, 1, 1), 0.9, (0.5,))] * 2, dtype=np.float32)[None, ...]
        cands = decode_candidates(buf, num_classes=1, objectness_threshold=0.3, num_anchors=2)
        self.assertEqual(len(cands), 2)

    def test_nothing_above_threshold_is_empty_not_error(self) -> None:
        buf = _record((0, 0, 1, 1), 0.1, (0.9,)) * 4
        self.assertEqual(decode_candidates(buf, num_classes=1, objectness_threshold=0.3), [])


if __name__ == "__main__":
    unittest.main()
