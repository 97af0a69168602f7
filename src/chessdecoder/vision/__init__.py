"""Vision layer: table localisation, boundary detection and cell cropping."""

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
from chessdecoder.vision.extractor import (
    Cell,
    build_grid,
    column_strips,
    create_image_with_boundaries,
    crop_image,
    extract_cells,
    row_strips,
)
from chessdecoder.vision.image import (
    AxisBoundaries,
    CornerSet,
    PixelBuffer,
    Point,
    Rectangle,
    TableDetection,
    load_image,
)

__all__ = [
    "AxisBoundaries",
    "Cell",
    "CornerSet",
    "PixelBuffer",
    "Point",
    "Rectangle",
    "TableDetection",
    "build_grid",
    "column_strips",
    "create_image_with_boundaries",
    "crop_image",
    "detect_columns_automatically",
    "detect_rows_automatically",
    "detect_table",
    "extract_cells",
    "find_table_boundaries",
    "get_detailed_corner_info",
    "get_detected_corners",
    "load_image",
    "row_strips",
    "split_image_into_columns",
    "split_image_into_rows",
]
