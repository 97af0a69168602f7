"""Tests for table localisation and boundary detection."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import SHEET_BOTTOM, SHEET_SEPARATORS, SHEET_TOP, draw_ruled_sheet
from chessdecoder.errors import InvalidImage
from chessdecoder.vision.analyzer import (
    detect_columns_automatically,
    detect_rows_automatically,
    detect_table,
    find_table_boundaries,
    get_detailed_corner_info,
    get_detected_corners,
    split_image_into_columns,
    split_image_into_rows,
)
from chessdecoder.vision.image import PixelBuffer, Rectangle, load_image

TOLERANCE = 3


def _blank(width: int = 300, height: int = 200) -> PixelBuffer:
    return load_image(np.full((height, width, 3), 255, dtype=np.uint8))


class TestTableDetection:
    def test_ruled_sheet_table_is_found(self, ruled_sheet: PixelBuffer) -> None:
        detection = detect_table(ruled_sheet)
        rect = detection.rect
        assert detection.found
        assert abs(rect.x - SHEET_SEPARATORS[0]) <= TOLERANCE
        assert abs(rect.right - SHEET_SEPARATORS[-1]) <= TOLERANCE + 1
        assert abs(rect.y - SHEET_TOP) <= TOLERANCE
        assert abs(rect.bottom - SHEET_BOTTOM) <= TOLERANCE + 1
        assert detection.vertical_line_count == len(SHEET_SEPARATORS)
        assert detection.horizontal_line_count == 2

    def test_table_is_inside_image(self, ruled_sheet: PixelBuffer) -> None:
        assert Rectangle.full(ruled_sheet).contains(find_table_boundaries(ruled_sheet))

    def test_blank_image_falls_back_to_full_frame(self) -> None:
        blank = _blank()
        detection = detect_table(blank)
        assert not detection.found
        assert detection.rect == Rectangle(0, 0, 300, 200)

    def test_corners_follow_outer_lines(self, ruled_sheet: PixelBuffer) -> None:
        corners = get_detected_corners(ruled_sheet)
        assert abs(corners.top_left.x - SHEET_SEPARATORS[0]) <= TOLERANCE
        assert abs(corners.top_left.y - SHEET_TOP) <= TOLERANCE
        assert abs(corners.bottom_right.x - SHEET_SEPARATORS[-1]) <= TOLERANCE + 1
        assert abs(corners.bottom_right.y - SHEET_BOTTOM) <= TOLERANCE

    def test_corner_info_on_square_sheet(self, ruled_sheet: PixelBuffer) -> None:
        info = get_detailed_corner_info(ruled_sheet)
        assert info["found"] is True
        assert info["horizontal_lines"] == 2
        assert info["vertical_lines"] == len(SHEET_SEPARATORS)
        assert info["perspective_ratio"] >= 0.99
        assert abs(info["angle_degrees"]) < 1.0
        assert info["confident"] is True
        assert len(info["corners"]) == 4

    def test_corner_info_on_blank_image(self) -> None:
        info = get_detailed_corner_info(_blank())
        assert info["found"] is False
        assert info["confident"] is False
        assert info["corners"] == [(0, 0), (300, 0), (300, 200), (0, 200)]


class TestColumnDetection:
    def test_separators_located(self, ruled_sheet: PixelBuffer) -> None:
        columns = detect_columns_automatically(ruled_sheet, expected_columns=6)
        assert columns.count == 6
        assert columns.method == "separators"
        assert not columns.low_confidence
        for found, expected in zip(columns.offsets, SHEET_SEPARATORS):
            assert abs(found - expected) <= TOLERANCE

    def test_result_is_deterministic(self, ruled_sheet: PixelBuffer) -> None:
        first = detect_columns_automatically(ruled_sheet)
        second = detect_columns_automatically(load_image(ruled_sheet.to_png_bytes()))
        assert first == second

    def test_offsets_stay_in_search_region(self, ruled_sheet: PixelBuffer) -> None:
        region = detect_table(ruled_sheet).rect
        columns = detect_columns_automatically(ruled_sheet, region, 6)
        assert region.x <= columns.offsets[0] < columns.offsets[-1] <= region.right

    def test_missing_outer_rules_are_completed_from_edges(self) -> None:
        sheet = load_image(draw_ruled_sheet())
        region = Rectangle(60, 30, 580, 340)
        columns = detect_columns_automatically(sheet, region, 6)
        assert columns.offsets[0] == 60
        assert columns.offsets[-1] == 640
        assert not columns.low_confidence
        for found, expected in zip(columns.offsets[1:-1], SHEET_SEPARATORS[1:-1]):
            assert abs(found - expected) <= TOLERANCE

    def test_blank_image_is_split_uniformly(self) -> None:
        columns = detect_columns_automatically(_blank(), expected_columns=6)
        assert columns.low_confidence
        assert columns.method == "uniform"
        assert columns.offsets == (0, 50, 100, 150, 200, 250, 300)

    def test_gutters_without_rules(self) -> None:
        img = np.full((100, 300, 3), 255, dtype=np.uint8)
        for x0 in (10, 110, 210):
            img[30:70, x0 : x0 + 80] = 0
        columns = detect_columns_automatically(load_image(img), Rectangle(0, 0, 300, 100), 3)
        assert columns.method == "gutters"
        assert not columns.low_confidence
        assert abs(columns.offsets[1] - 100) <= TOLERANCE
        assert abs(columns.offsets[2] - 200) <= TOLERANCE

    def test_region_narrower_than_column_count(self) -> None:
        with pytest.raises(InvalidImage, match="cannot hold"):
            detect_columns_automatically(_blank(), Rectangle(0, 0, 4, 50), 6)

    def test_column_count_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            detect_columns_automatically(_blank(), expected_columns=0)


class TestRowDetection:
    def test_ruled_rows(self) -> None:
        sheet = load_image(draw_ruled_sheet(rows=[110, 200, 290]))
        rows = detect_rows_automatically(sheet, expected_rows=4)
        assert rows.axis == "y"
        assert not rows.low_confidence
        for found, expected in zip(rows.offsets, [SHEET_TOP, 110, 200, 290, SHEET_BOTTOM]):
            assert abs(found - expected) <= TOLERANCE

    def test_unruled_rows_are_uniform(self, ruled_sheet: PixelBuffer) -> None:
        rows = detect_rows_automatically(ruled_sheet, expected_rows=10)
        assert rows.low_confidence
        assert rows.count == 10


class TestSplitting:
    def test_split_into_columns(self, ruled_sheet: PixelBuffer) -> None:
        strips = split_image_into_columns(ruled_sheet, 6)
        assert len(strips) == 6
        assert all(abs(strip.width - 100) <= 2 * TOLERANCE for strip in strips)

    def test_split_into_rows(self) -> None:
        sheet = load_image(draw_ruled_sheet(rows=[110, 200, 290]))
        strips = split_image_into_rows(sheet, 4)
        assert len(strips) == 4
        assert all(strip.width == strips[0].width for strip in strips)
