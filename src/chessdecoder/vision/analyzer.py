"""Table localisation and column/row boundary detection for scoresheet photos.

Every function here is pure: the same buffer always yields the same result.
Ambiguous images never raise; they degrade to a full-image table or to a
uniform subdivision flagged ``low_confidence``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import cv2
import numpy as np

from chessdecoder.errors import InvalidImage
from chessdecoder.vision.extractor import column_strips, row_strips
from chessdecoder.vision.image import (
    AxisBoundaries,
    CornerSet,
    PixelBuffer,
    Point,
    Rectangle,
    TableDetection,
    load_image,
)

_LOGGER = logging.getLogger(__name__)

# Minimum gradient magnitude for a pixel to count as a line edge.
_MIN_GRADIENT = 40.0
# Long-kernel length as a fraction of the image dimension along the line.
_LINE_KERNEL_FRACTION = 0.25
# Rows/columns closer than this are merged into one ruled line.
_LINE_GROUP_GAP = 3
# A detected table smaller than this fraction of the image is ignored.
_MIN_TABLE_AREA_FRACTION = 0.05
# Dark-pixel threshold used for the projection profile (gray < 128 is ink).
_INK_THRESHOLD = 128
# A column whose ink covers this share of the region height is a ruled separator.
_SEPARATOR_COVERAGE = 0.5
# Gutter threshold relative to the smoothed profile range.
_GUTTER_LEVEL = 0.1


@dataclass(frozen=True, slots=True)
class _Line:
    """A ruled line: thickness range ``lo..hi`` and extent ``start..end`` along it."""

    lo: int
    hi: int
    start: int
    end: int

    @property
    def center(self) -> int:
        return (self.lo + self.hi) // 2

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def _group_runs(indices: np.ndarray, gap: int) -> list[tuple[int, int]]:
    """Collapse sorted indices into ``(first, last)`` runs separated by > *gap*."""
    if indices.size == 0:
        return []
    runs: list[tuple[int, int]] = []
    start = prev = int(indices[0])
    for idx in indices[1:]:
        idx = int(idx)
        if idx - prev > gap:
            runs.append((start, prev))
            start = idx
        prev = idx
    runs.append((start, prev))
    return runs


def _line_mask(gray: np.ndarray, horizontal: bool) -> np.ndarray:
    """Binary mask of long, straight, high-gradient runs in one direction."""
    h, w = gray.shape
    if horizontal:
        grad = np.abs(cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3))
    else:
        grad = np.abs(cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3))
    peak = float(grad.max()) if grad.size else 0.0
    thr = max(_MIN_GRADIENT, 0.2 * peak)
    edges = (grad >= thr).astype(np.uint8) * 255

    # Merge the two edges of a thin line before keeping only long runs.
    across = (1, 3) if horizontal else (3, 1)
    edges = cv2.dilate(edges, cv2.getStructuringElement(cv2.MORPH_RECT, across))

    klen = max(15, int((w if horizontal else h) * _LINE_KERNEL_FRACTION))
    along = (klen, 1) if horizontal else (1, klen)
    K = cv2.getStructuringElement(cv2.MORPH_RECT, along)
    return cv2.morphologyEx(edges, cv2.MORPH_OPEN, K, iterations=1)


def _find_lines(mask: np.ndarray, horizontal: bool) -> list[_Line]:
    profile_axis = 1 if horizontal else 0
    hits = np.nonzero(mask.any(axis=profile_axis))[0]
    lines: list[_Line] = []
    for lo, hi in _group_runs(hits, _LINE_GROUP_GAP):
        band = mask[lo : hi + 1, :] if horizontal else mask[:, lo : hi + 1]
        along = np.nonzero(band.any(axis=0 if horizontal else 1))[0]
        lines.append(_Line(lo, hi, int(along[0]), int(along[-1])))
    return lines


def _detect(gray: np.ndarray) -> tuple[TableDetection, list[_Line], list[_Line]]:
    h, w = gray.shape
    full = Rectangle(0, 0, w, h)
    hlines = _find_lines(_line_mask(gray, horizontal=True), horizontal=True)
    vlines = _find_lines(_line_mask(gray, horizontal=False), horizontal=False)

    rect: Rectangle | None = None
    if len(hlines) >= 2 and len(vlines) >= 2:
        x0 = min(v.lo for v in vlines)
        x1 = max(v.hi for v in vlines) + 1
        y0 = min(hl.lo for hl in hlines)
        y1 = max(hl.hi for hl in hlines) + 1
        if x1 > x0 and y1 > y0:
            rect = Rectangle(x0, y0, x1 - x0, y1 - y0)
    elif len(hlines) >= 2:
        x0 = min(hl.start for hl in hlines)
        x1 = max(hl.end for hl in hlines) + 1
        y0, y1 = hlines[0].lo, hlines[-1].hi + 1
        rect = Rectangle(x0, y0, x1 - x0, y1 - y0)
    elif len(vlines) >= 2:
        y0 = min(v.start for v in vlines)
        y1 = max(v.end for v in vlines) + 1
        x0, x1 = vlines[0].lo, vlines[-1].hi + 1
        rect = Rectangle(x0, y0, x1 - x0, y1 - y0)

    if rect is not None:
        rect = rect.clamp(w, h)
        if rect.area < _MIN_TABLE_AREA_FRACTION * full.area:
            rect = None

    hpos = tuple(hl.center for hl in hlines)
    vpos = tuple(v.center for v in vlines)
    if rect is None:
        _LOGGER.warning(
            "No table structure found (%d horizontal, %d vertical lines); using full image",
            len(hlines),
            len(vlines),
        )
        return TableDetection(full, False, hpos, vpos), hlines, vlines
    return TableDetection(rect, True, hpos, vpos), hlines, vlines


def detect_table(image: Any) -> TableDetection:
    """Locate the scoresheet table and report how it was found."""
    buffer = load_image(image)
    return _detect(buffer.gray())[0]


def find_table_boundaries(image: Any) -> Rectangle:
    """Bounding rectangle of the ruled table, or the full image as fallback.

    The result is always contained in the image and has positive size.
    """
    return detect_table(image).rect


def get_detected_corners(image: Any) -> CornerSet:
    """Table corners (TL, TR, BR, BL) taken from the outermost ruled lines."""
    buffer = load_image(image)
    detection, hlines, _ = _detect(buffer.gray())
    return _corners(detection, hlines)


def _corners(detection: TableDetection, hlines: list[_Line]) -> CornerSet:
    if not detection.found or len(hlines) < 2:
        return CornerSet.from_rectangle(detection.rect)
    top, bottom = hlines[0], hlines[-1]
    return CornerSet(
        (
            Point(top.start, top.center),
            Point(top.end + 1, top.center),
            Point(bottom.end + 1, bottom.center),
            Point(bottom.start, bottom.center),
        )
    )


def _line_angle(mask: np.ndarray, line: _Line) -> float:
    ys, xs = np.nonzero(mask[line.lo : line.hi + 1, :])
    if xs.size < 2 or np.unique(xs).size < 2:
        return 0.0
    slope = float(np.polyfit(xs.astype(np.float64), ys.astype(np.float64), 1)[0])
    return math.degrees(math.atan(slope))


def get_detailed_corner_info(image: Any) -> dict[str, Any]:
    """Diagnostics about the table outline: corners, line counts, skew."""
    buffer = load_image(image)
    gray = buffer.gray()
    detection, hlines, vlines = _detect(gray)
    corners = _corners(detection, hlines)
    tl, tr, br, bl = corners.points[:4]

    top_width = tr.x - tl.x
    bottom_width = br.x - bl.x
    left_height = bl.y - tl.y
    right_height = br.y - tr.y
    widest = max(top_width, bottom_width)
    ratio = min(top_width, bottom_width) / widest if widest > 0 else 0.0

    angle = 0.0
    if hlines:
        angle = _line_angle(_line_mask(gray, horizontal=True), hlines[0])

    return {
        "found": detection.found,
        "table": detection.rect.as_tuple(),
        "corners": [(p.x, p.y) for p in corners],
        "horizontal_lines": detection.horizontal_line_count,
        "vertical_lines": detection.vertical_line_count,
        "horizontal_positions": list(detection.horizontal_lines),
        "vertical_positions": list(detection.vertical_lines),
        "top_width": top_width,
        "bottom_width": bottom_width,
        "left_height": left_height,
        "right_height": right_height,
        "perspective_ratio": round(ratio, 4),
        "angle_degrees": round(angle, 3),
        "confident": detection.found and ratio >= 0.9 and abs(angle) < 3.0,
    }


# ── Axis boundaries ──────────────────────────────────────────────────────


def _smooth(profile: np.ndarray, window: int) -> np.ndarray:
    kernel = np.ones(window, dtype=np.float64) / window
    return np.convolve(profile.astype(np.float64), kernel, mode="same")


def _separator_centers(ink: np.ndarray) -> list[int]:
    """Centers of ruled separator lines (ink runs covering most of the span)."""
    span = ink.shape[0]
    counts = ink.sum(axis=0)
    hits = np.nonzero(counts >= _SEPARATOR_COVERAGE * span)[0]
    return [(a + b) // 2 for a, b in _group_runs(hits, 2)]


def _gutter_centers(ink: np.ndarray) -> list[int]:
    """Centers of interior low-ink plateaus of the smoothed profile."""
    length = ink.shape[1]
    window = max(3, length // 100)
    smoothed = _smooth(ink.sum(axis=0), window)
    lo, hi = float(smoothed.min()), float(smoothed.max())
    if hi - lo < 1.0:
        return []
    low = np.nonzero(smoothed <= lo + _GUTTER_LEVEL * (hi - lo))[0]
    centers = []
    for a, b in _group_runs(low, 1):
        if a == 0 or b == length - 1:
            continue
        centers.append((a + b) // 2)
    return centers


def _with_edges(centers: list[int], length: int, expected: int) -> list[int] | None:
    """Complete separator centers with region edges so there are expected+1."""
    if len(centers) == expected + 1:
        offsets = list(centers)
    elif len(centers) == expected - 1:
        offsets = [0, *centers, length]
    elif len(centers) == expected and centers:
        if centers[0] < length - centers[-1]:
            offsets = [*centers, length]
        else:
            offsets = [0, *centers]
    else:
        return None
    if any(b <= a for a, b in zip(offsets, offsets[1:])):
        return None
    return offsets


def _snap_uniform(length: int, expected: int, candidates: list[int]) -> list[int]:
    """Uniform subdivision with interior edges snapped to nearby candidates."""
    radius = length / (2 * expected)
    offsets = [0]
    for i in range(1, expected):
        dummy = round(i * length / expected)
        best = dummy
        best_dist = radius
        for c in candidates:
            dist = abs(c - dummy)
            # Ties go to the right-hand boundary.
            if dist < best_dist or (dist == best_dist and c > best):
                best, best_dist = c, dist
        if best <= offsets[-1] or best >= length:
            best = max(dummy, offsets[-1] + 1)
        offsets.append(best)
    offsets.append(length)
    return offsets


def _detect_axis(
    gray_region: np.ndarray, expected: int, origin: int, axis: str
) -> AxisBoundaries:
    """Boundaries along the second array axis of *gray_region* (columns)."""
    length = gray_region.shape[1]
    if length < expected:
        raise InvalidImage(
            f"Search region of {length} px cannot hold {expected} {'columns' if axis == 'x' else 'rows'}"
        )
    ink = (gray_region < _INK_THRESHOLD).astype(np.int32)

    separators = _separator_centers(ink)
    offsets = _with_edges(separators, length, expected)
    method = "separators"
    low_confidence = False

    if offsets is None:
        gutters = _gutter_centers(ink)
        if len(gutters) == expected - 1:
            offsets = [0, *gutters, length]
            method = "gutters"
        else:
            offsets = _snap_uniform(length, expected, sorted(set(separators) | set(gutters)))
            method = "uniform"
            low_confidence = True
            _LOGGER.warning(
                "Axis %s: %d separators, %d gutters for %d expected spans; uniform fallback",
                axis,
                len(separators),
                len(gutters),
                expected,
            )

    return AxisBoundaries(
        tuple(origin + int(o) for o in offsets),
        axis=axis,
        low_confidence=low_confidence,
        method=method,
    )


def _region(buffer: PixelBuffer, search_region: Rectangle | None) -> Rectangle:
    if search_region is None:
        return find_table_boundaries(buffer)
    return search_region.clamp(buffer.width, buffer.height)


def detect_columns_automatically(
    image: Any, search_region: Rectangle | None = None, expected_columns: int = 6
) -> AxisBoundaries:
    """Column boundaries (absolute x offsets) inside *search_region*.

    Ruled separators are used when present, then ink gutters; otherwise the
    region is split uniformly and the result is flagged ``low_confidence``.
    """
    if expected_columns < 1:
        raise ValueError("expected_columns must be positive")
    buffer = load_image(image)
    region = _region(buffer, search_region)
    gray = buffer.gray()[region.y : region.bottom, region.x : region.right]
    result = _detect_axis(gray, expected_columns, region.x, "x")
    _LOGGER.debug("Columns %s via %s", result.offsets, result.method)
    return result


def detect_rows_automatically(
    image: Any, search_region: Rectangle | None = None, expected_rows: int = 20
) -> AxisBoundaries:
    """Row boundaries (absolute y offsets); mirror of the column detector."""
    if expected_rows < 1:
        raise ValueError("expected_rows must be positive")
    buffer = load_image(image)
    region = _region(buffer, search_region)
    gray = buffer.gray()[region.y : region.bottom, region.x : region.right]
    result = _detect_axis(np.ascontiguousarray(gray.T), expected_rows, region.y, "y")
    _LOGGER.debug("Rows %s via %s", result.offsets, result.method)
    return result


def split_image_into_columns(image: Any, expected_count: int = 6) -> list[PixelBuffer]:
    """Crop the detected table into *expected_count* column strips."""
    buffer = load_image(image)
    region = find_table_boundaries(buffer)
    columns = detect_columns_automatically(buffer, region, expected_count)
    return column_strips(buffer, columns, region)


def split_image_into_rows(image: Any, expected_count: int = 20) -> list[PixelBuffer]:
    """Crop the detected table into *expected_count* row strips."""
    buffer = load_image(image)
    region = find_table_boundaries(buffer)
    rows = detect_rows_automatically(buffer, region, expected_count)
    return row_strips(buffer, rows, region)
