"""Pixel buffers and geometric value types shared by the vision layer."""

from __future__ import annotations

import io
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from chessdecoder.errors import InvalidImage


@dataclass(frozen=True, slots=True, eq=False)
class PixelBuffer:
    """Read-only RGBA image of shape ``(height, width, 4)``."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        arr = self.pixels
        if arr.ndim != 3 or arr.shape[2] != 4 or arr.dtype != np.uint8:
            raise InvalidImage(f"Expected a (H, W, 4) uint8 array, got {arr.shape} {arr.dtype}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise InvalidImage("Image has a zero dimension")
        if arr.flags.writeable:
            arr = arr.copy()
            arr.setflags(write=False)
            object.__setattr__(self, "pixels", arr)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def rgb(self) -> np.ndarray:
        return np.ascontiguousarray(self.pixels[:, :, :3])

    def gray(self) -> np.ndarray:
        """ITU-R 601 luminance as a ``uint8`` array."""
        rgb = self.pixels[:, :, :3].astype(np.float32)
        lum = rgb[:, :, 0] * 0.299 + rgb[:, :, 1] * 0.587 + rgb[:, :, 2] * 0.114
        return np.clip(np.rint(lum), 0, 255).astype(np.uint8)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def to_png_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.to_pil().save(buf, format="PNG")
        return buf.getvalue()

    def to_jpeg_bytes(self, max_dimension: int | None = None, quality: int = 90) -> bytes:
        """JPEG encoding, downscaled so the longer side fits *max_dimension*."""
        img = self.to_pil().convert("RGB")
        if max_dimension is not None and max(img.size) > max_dimension:
            img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=quality)
        return buf.getvalue()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(
            np.array_equal(self.pixels, other.pixels)
        )


def _from_array(arr: np.ndarray) -> PixelBuffer:
    if arr.ndim == 2:
        arr = np.dstack([arr, arr, arr, np.full_like(arr, 255)])
    elif arr.ndim == 3 and arr.shape[2] == 3:
        arr = np.dstack([arr, np.full(arr.shape[:2], 255, dtype=arr.dtype)])
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    return PixelBuffer(arr)


def load_image(source: object) -> PixelBuffer:
    """Decode *source* into a :class:`PixelBuffer`.

    Accepts encoded bytes, a file path, a PIL image, a numpy array
    (grayscale, RGB or RGBA) or an existing buffer.
    """
    if isinstance(source, PixelBuffer):
        return source
    if isinstance(source, np.ndarray):
        if source.size == 0:
            raise InvalidImage("Image array is empty")
        if source.ndim not in (2, 3) or (source.ndim == 3 and source.shape[2] not in (3, 4)):
            raise InvalidImage(f"Unsupported image array shape {source.shape}")
        return _from_array(source)
    if isinstance(source, Image.Image):
        return _from_pil(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        if not data:
            raise InvalidImage("Image buffer is empty")
        try:
            with Image.open(io.BytesIO(data)) as img:
                return _from_pil(img)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise InvalidImage(f"Cannot decode image: {exc}") from exc
    if isinstance(source, (str, Path)):
        try:
            with Image.open(source) as img:
                return _from_pil(img)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise InvalidImage(f"Cannot read image {source}: {exc}") from exc
    raise InvalidImage(f"Unsupported image source: {type(source).__name__}")


def _from_pil(img: Image.Image) -> PixelBuffer:
    if img.width == 0 or img.height == 0:
        raise InvalidImage("Image has a zero dimension")
    return PixelBuffer(np.array(img.convert("RGBA"), dtype=np.uint8))


# ── Geometry ─────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Rectangle:
    """Axis-aligned rectangle in pixel space (``right``/``bottom`` exclusive)."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Rectangle must have positive size, got {self.width}x{self.height}")

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def contains(self, other: Rectangle) -> bool:
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def clamp(self, width: int, height: int) -> Rectangle:
        """Intersection with ``(0, 0, width, height)``.

        Raises ``ValueError`` when the rectangle lies completely outside.
        """
        x0 = min(max(self.x, 0), width)
        y0 = min(max(self.y, 0), height)
        x1 = min(max(self.right, 0), width)
        y1 = min(max(self.bottom, 0), height)
        return Rectangle(x0, y0, x1 - x0, y1 - y0)

    @classmethod
    def full(cls, image: PixelBuffer) -> Rectangle:
        return cls(0, 0, image.width, image.height)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True, slots=True)
class CornerSet:
    """Table corners ordered top-left, top-right, bottom-right, bottom-left."""

    points: tuple[Point, ...]

    def __post_init__(self) -> None:
        if len(self.points) < 4:
            raise ValueError(f"CornerSet needs at least 4 points, got {len(self.points)}")

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def top_left(self) -> Point:
        return self.points[0]

    @property
    def top_right(self) -> Point:
        return self.points[1]

    @property
    def bottom_right(self) -> Point:
        return self.points[2]

    @property
    def bottom_left(self) -> Point:
        return self.points[3]

    @classmethod
    def from_rectangle(cls, rect: Rectangle) -> CornerSet:
        return cls(
            (
                Point(rect.x, rect.y),
                Point(rect.right, rect.y),
                Point(rect.right, rect.bottom),
                Point(rect.x, rect.bottom),
            )
        )


@dataclass(frozen=True, slots=True)
class TableDetection:
    """Outcome of table localisation; ``found=False`` means full-image fallback."""

    rect: Rectangle
    found: bool
    horizontal_lines: tuple[int, ...] = ()
    vertical_lines: tuple[int, ...] = ()

    @property
    def horizontal_line_count(self) -> int:
        return len(self.horizontal_lines)

    @property
    def vertical_line_count(self) -> int:
        return len(self.vertical_lines)


@dataclass(frozen=True, slots=True)
class AxisBoundaries:
    """Strictly increasing pixel offsets along one axis.

    ``offsets`` has ``count + 1`` entries; consecutive pairs delimit a column
    (``axis == "x"``) or a row (``axis == "y"``).
    """

    offsets: tuple[int, ...]
    axis: str = "x"
    low_confidence: bool = False
    method: str = "separators"

    def __post_init__(self) -> None:
        if self.axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', got {self.axis!r}")
        if len(self.offsets) < 2:
            raise ValueError("AxisBoundaries needs at least two offsets")
        if any(b <= a for a, b in zip(self.offsets, self.offsets[1:])):
            raise ValueError(f"Offsets must be strictly increasing: {self.offsets}")

    @property
    def count(self) -> int:
        return len(self.offsets) - 1

    def spans(self) -> list[tuple[int, int]]:
        return list(zip(self.offsets, self.offsets[1:]))

    def widths(self) -> list[int]:
        return [end - start for start, end in self.spans()]
