"""Cell grid construction, cropping and debug overlays."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import cv2
import numpy as np

from chessdecoder.vision.image import AxisBoundaries, PixelBuffer, Rectangle

_COLUMN_COLOR = (255, 0, 0, 255)
_ROW_COLOR = (0, 160, 255, 255)
_TABLE_COLOR = (0, 200, 0, 255)


@dataclass(frozen=True, slots=True)
class Cell:
    """One scoresheet cell; ``(column_index, row_index)`` is its grid key."""

    column_index: int
    row_index: int
    rect: Rectangle

    @property
    def key(self) -> tuple[int, int]:
        return self.column_index, self.row_index


def crop_image(image: PixelBuffer, rect: Rectangle) -> PixelBuffer:
    """Sub-image covered by *rect*, clipped to the image bounds."""
    clipped = rect.clamp(image.width, image.height)
    return PixelBuffer(
        image.pixels[clipped.y : clipped.bottom, clipped.x : clipped.right]
    )


def build_grid(columns: AxisBoundaries, rows: AxisBoundaries) -> list[Cell]:
    """Cells ordered column by column, top to bottom."""
    if columns.axis != "x" or rows.axis != "y":
        raise ValueError("build_grid expects column (x) and row (y) boundaries")
    cells = []
    for ci, (x0, x1) in enumerate(columns.spans()):
        for ri, (y0, y1) in enumerate(rows.spans()):
            cells.append(Cell(ci, ri, Rectangle(x0, y0, x1 - x0, y1 - y0)))
    return cells


def extract_cells(
    image: PixelBuffer, cells: Iterable[Cell]
) -> dict[tuple[int, int], PixelBuffer]:
    return {cell.key: crop_image(image, cell.rect) for cell in cells}


def column_strips(
    image: PixelBuffer, columns: AxisBoundaries, region: Rectangle
) -> list[PixelBuffer]:
    """One buffer per column span, covering the full height of *region*."""
    return [
        crop_image(image, Rectangle(x0, region.y, x1 - x0, region.height))
        for x0, x1 in columns.spans()
    ]


def row_strips(
    image: PixelBuffer, rows: AxisBoundaries, region: Rectangle
) -> list[PixelBuffer]:
    """One buffer per row span, covering the full width of *region*."""
    return [
        crop_image(image, Rectangle(region.x, y0, region.width, y1 - y0))
        for y0, y1 in rows.spans()
    ]


def create_image_with_boundaries(
    image: PixelBuffer,
    columns: AxisBoundaries | Sequence[int] | None = None,
    rows: AxisBoundaries | Sequence[int] | None = None,
    table: Rectangle | None = None,
    thickness: int = 2,
) -> PixelBuffer:
    """Copy of *image* with the table outline and boundary lines drawn on it."""
    canvas = np.array(image.pixels, copy=True)
    h, w = canvas.shape[:2]
    top, bottom = (table.y, table.bottom - 1) if table else (0, h - 1)
    left, right = (table.x, table.right - 1) if table else (0, w - 1)

    if table is not None:
        cv2.rectangle(canvas, (left, top), (right, bottom), _TABLE_COLOR, thickness)

    col_offsets = columns.offsets if isinstance(columns, AxisBoundaries) else columns or ()
    for x in col_offsets:
        x = min(max(int(x), 0), w - 1)
        cv2.line(canvas, (x, top), (x, bottom), _COLUMN_COLOR, thickness)

    row_offsets = rows.offsets if isinstance(rows, AxisBoundaries) else rows or ()
    for y in row_offsets:
        y = min(max(int(y), 0), h - 1)
        cv2.line(canvas, (left, y), (right, y), _ROW_COLOR, thickness)

    return PixelBuffer(canvas)
