"""Tests for YOLO label conversion."""

import pytest
from pathlib import Path

from data_labeler.core.models import Box, LabelRecord
from data_labeler.core.yolo_format import (
    decode_labels,
    denormalize,
    encode_labels,
    format_label_text,
    get_label_path,
    has_annotation,
    normalize,
    parse_label_text
)

CLASSES = ["person", "car"]


class TestParseLabelText:
    """Tests for parsing label file text."""

    def test_empty_text(self):
        assert parse_label_text("") == []

    def test_multiple_lines(self):
        records = parse_label_text("0 0.5 0.5 0.2 0.1\n1 0.3 0.3 0.1 0.15\n")

        assert len(records) == 2
        assert records[1].class_index == 1
        assert records[1].height == pytest.approx(0.15)

    def test_skips_malformed_lines(self):
        text = "0 0.5 0.5 0.2 0.1\nbroken line\n\n1 0.1 0.1 0.1 0.1 0.1 0.1\n1 0.3 0.3 0.1 0.15"
        records = parse_label_text(text)

        assert [r.class_index for r in records] == [0, 1]

    def test_crlf_line_endings(self):
        records = parse_label_text("0 0.5 0.5 0.2 0.1\r\n1 0.3 0.3 0.1 0.15\r\n")
        assert len(records) == 2


class TestFormatLabelText:
    """Tests for formatting label file text."""

    def test_trailing_newline(self):
        text = format_label_text([
            LabelRecord(0, 0.5, 0.5, 0.2, 0.1),
            LabelRecord(1, 0.25, 0.75, 0.1, 0.1),
        ])

        assert text == "0 0.500000 0.500000 0.200000 0.100000\n1 0.250000 0.750000 0.100000 0.100000\n"

    def test_no_records(self):
        assert format_label_text([]) == ""


class TestNormalize:
    """Tests for pixel to normalized conversion."""

    def test_center_based_fractions(self):
        records = normalize([Box(100, 100, 200, 150, "person")], 1000, 800, CLASSES)

        assert records[0].class_index == 0
        assert records[0].x_center == pytest.approx(0.2)
        assert records[0].y_center == pytest.approx(0.21875)
        assert records[0].width == pytest.approx(0.2)
        assert records[0].height == pytest.approx(0.1875)

    def test_drops_unknown_class(self):
        boxes = [Box(0, 0, 10, 10, "person"), Box(0, 0, 10, 10, "tree")]
        records = normalize(boxes, 100, 100, CLASSES)

        assert len(records) == 1
        assert records[0].class_index == 0

    def test_first_occurrence_wins_for_duplicate_names(self):
        records = normalize([Box(0, 0, 10, 10, "car")], 100, 100, ["car", "person", "car"])
        assert records[0].class_index == 0

    def test_invalid_dimensions(self):
        with pytest.raises(ValueError):
            normalize([Box(0, 0, 10, 10, "car")], 0, 100, CLASSES)


class TestDenormalize:
    """Tests for normalized to pixel conversion."""

    def test_top_left_from_center(self):
        boxes = denormalize([LabelRecord(1, 0.5, 0.5, 0.2, 0.1)], 1000, 1000, CLASSES)

        assert boxes[0].label == "car"
        assert boxes[0].x == pytest.approx(400)
        assert boxes[0].y == pytest.approx(450)
        assert boxes[0].width == pytest.approx(200)
        assert boxes[0].height == pytest.approx(100)
        assert boxes[0].confidence is None

    def test_out_of_range_class_is_unknown(self):
        records = [LabelRecord(5, 0.5, 0.5, 0.2, 0.1), LabelRecord(-1, 0.5, 0.5, 0.2, 0.1)]
        boxes = denormalize(records, 100, 100, CLASSES)

        assert [b.label for b in boxes] == ["unknown", "unknown"]

    def test_invalid_dimensions(self):
        with pytest.raises(ValueError):
            denormalize([], 100, -1, CLASSES)


class TestEndToEnd:
    """Tests for saving and reloading a drawn box."""

    def test_encode_known_line(self):
        text = encode_labels([Box(100, 100, 200, 150, "person")], 1000, 800, CLASSES)
        assert text == "0 0.200000 0.218750 0.200000 0.187500\n"

    def test_reload_recovers_pixels(self):
        text = encode_labels([Box(100, 100, 200, 150, "person")], 1000, 800, CLASSES)
        boxes = decode_labels(text, 1000, 800, CLASSES)

        assert len(boxes) == 1
        assert boxes[0].label == "person"
        assert boxes[0].x == pytest.approx(100, abs=0.01)
        assert boxes[0].y == pytest.approx(100, abs=0.01)
        assert boxes[0].width == pytest.approx(200, abs=0.01)
        assert boxes[0].height == pytest.approx(150, abs=0.01)

    def test_malformed_line_between_records(self):
        text = "0 0.5 0.5 0.2 0.2\nnot a valid line\n1 0.1 0.1 0.05 0.05"
        boxes = decode_labels(text, 640, 480, CLASSES)

        assert [b.label for b in boxes] == ["person", "car"]

    def test_fractional_pixels_within_rounding(self):
        original = [Box(12.345, 67.891, 101.25, 33.3333, "car")]
        boxes = decode_labels(encode_labels(original, 1920, 1080, CLASSES), 1920, 1080, CLASSES)

        assert boxes[0].x == pytest.approx(original[0].x, abs=1e-2)
        assert boxes[0].height == pytest.approx(original[0].height, abs=1e-2)

    def test_confidence_not_written(self):
        text = encode_labels([Box(0, 0, 50, 50, "car", confidence=0.9)], 100, 100, CLASSES)
        assert text.split() == ["1", "0.250000", "0.250000", "0.500000", "0.500000"]


def test_get_label_path():
    assert get_label_path(Path("/data/annotation/cat_01.jpg")) == Path("/data/annotation/cat_01.txt")


def test_has_annotation(tmp_path):
    label_path = tmp_path / "a.txt"
    assert not has_annotation(label_path)

    label_path.write_text("garbage\n")
    assert not has_annotation(label_path)

    label_path.write_text("0 0.5 0.5 0.1 0.1\n")
    assert has_annotation(label_path)
