"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import cv2
import numpy as np
import pytest

from chessdecoder.config import DecoderSettings, get_settings
from chessdecoder.vision.image import PixelBuffer, load_image

# Ruled test sheet: 6 columns of 100 px between x=50 and x=650.
SHEET_WIDTH = 700
SHEET_HEIGHT = 400
SHEET_SEPARATORS = [50 + 100 * k for k in range(7)]
SHEET_TOP = 20
SHEET_BOTTOM = 380


def draw_ruled_sheet(
    separators: list[int] = SHEET_SEPARATORS,
    rows: list[int] | None = None,
    width: int = SHEET_WIDTH,
    height: int = SHEET_HEIGHT,
) -> np.ndarray:
    """White RGB canvas with 3 px vertical rules and a top/bottom border."""
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    for x in separators:
        img[SHEET_TOP : SHEET_BOTTOM + 1, x - 1 : x + 2] = 0
    for y in [SHEET_TOP, SHEET_BOTTOM, *(rows or [])]:
        img[y - 1 : y + 2, separators[0] : separators[-1] + 1] = 0
    return img


@pytest.fixture
def ruled_sheet() -> PixelBuffer:
    return load_image(draw_ruled_sheet())


@pytest.fixture
def handwritten_sheet() -> Callable[[list[str]], bytes]:
    """PNG bytes of the ruled sheet with a scribble in every column."""

    def make(labels: list[str] | None = None) -> bytes:
        img = draw_ruled_sheet()
        for idx, (x0, x1) in enumerate(zip(SHEET_SEPARATORS, SHEET_SEPARATORS[1:])):
            text = labels[idx] if labels else "e4"
            cv2.putText(img, text, (x0 + 20, 100), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 0, 0), 2)
        return load_image(img).to_png_bytes()

    return make


@pytest.fixture
def settings() -> DecoderSettings:
    return DecoderSettings(openai_api_key=None, ocr_max_workers=2, expected_rows=4)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """``get_settings`` is cached per process; tests that touch env need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
