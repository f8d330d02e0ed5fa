# hcgline/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import numpy as np


def _check_pixel_values(arr: np.ndarray) -> None:
    """Only 8-bit channel values: integer dtype, 0..255."""
    if not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"Pixel values must be integers 0-255, got dtype {arr.dtype}")
    if arr.size and (arr.min() < 0 or arr.max() > 255):
        raise ValueError(
            f"Pixel values must be in 0-255, got range {arr.min()}..{arr.max()}"
        )


@dataclass(frozen=True)
class PixelRaster:
    """
    Read-only RGBA view over a decoded image.

    rgba has shape (H, W, 4), dtype uint8. Alpha is carried but never used
    for measurement.
    """
    rgba: np.ndarray

    def __post_init__(self):
        arr = np.asarray(self.rgba)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"rgba must have shape (H, W, 4), got {arr.shape}")
        _check_pixel_values(arr)
        # own copy so the caller's array stays writeable
        arr = np.array(arr, dtype=np.uint8, order="C")
        arr.flags.writeable = False
        object.__setattr__(self, "rgba", arr)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "PixelRaster":
        """Accepts (H, W) gray, (H, W, 3) RGB or (H, W, 4) RGBA arrays."""
        arr = np.asarray(pixels)
        _check_pixel_values(arr)
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, None], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel array shape {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=2)
        return cls(arr.astype(np.uint8))

    @classmethod
    def from_buffer(cls, width: int, height: int, data) -> "PixelRaster":
        """Row-major RGBA byte buffer, 4 bytes per pixel."""
        buf = np.frombuffer(bytes(data), dtype=np.uint8)
        if width < 0 or height < 0 or buf.size != width * height * 4:
            raise ValueError(
                f"Buffer of {buf.size} bytes does not match {width}x{height} RGBA"
            )
        return cls(buf.reshape(height, width, 4))

    @property
    def width(self) -> int:
        return int(self.rgba.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgba.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        return self.rgba[:, :, :3]


@dataclass(frozen=True)
class Rect:
    """Rectangle in native image pixels."""
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if min(self.x, self.y, self.width, self.height) < 0:
            raise ValueError(f"Rect values must be non-negative: {self}")

    @property
    def area(self) -> int:
        return self.width * self.height

    def fits(self, width: int, height: int) -> bool:
        return self.x + self.width <= width and self.y + self.height <= height


@dataclass(frozen=True)
class LineSelection:
    """
    Pixels classified as indicator line.

    xs, ys : (N,) int arrays of coordinates, no duplicates
    pixels : (N, 4) uint8 array of the RGBA values at those coordinates
    """
    xs: np.ndarray
    ys: np.ndarray
    pixels: np.ndarray

    @classmethod
    def empty(cls) -> "LineSelection":
        return cls(
            xs=np.zeros(0, dtype=np.int64),
            ys=np.zeros(0, dtype=np.int64),
            pixels=np.zeros((0, 4), dtype=np.uint8),
        )

    @classmethod
    def from_flat(cls, raster: PixelRaster, flat_idx) -> "LineSelection":
        """Build from flat (y * W + x) indices into the raster."""
        flat_idx = np.asarray(flat_idx, dtype=np.int64)
        if flat_idx.size == 0:
            return cls.empty()
        ys, xs = np.divmod(flat_idx, raster.width)
        pixels = raster.rgba.reshape(-1, 4)[flat_idx].copy()
        return cls(xs=xs, ys=ys, pixels=pixels)

    def __len__(self) -> int:
        return int(self.xs.shape[0])

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def coordinates(self) -> list[tuple[int, int]]:
        return list(zip(self.xs.tolist(), self.ys.tolist()))

    def bbox(self) -> Rect | None:
        if self.is_empty:
            return None
        x0, x1 = int(self.xs.min()), int(self.xs.max())
        y0, y1 = int(self.ys.min()), int(self.ys.max())
        return Rect(x0, y0, x1 - x0 + 1, y1 - y0 + 1)

    def offset(self, dx: int, dy: int) -> "LineSelection":
        """Shift coordinates, e.g. back into uncropped image space."""
        return LineSelection(xs=self.xs + dx, ys=self.ys + dy, pixels=self.pixels)


@dataclass(frozen=True)
class ColorSummary:
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    grayscale: float = 0.0

    @classmethod
    def zero(cls) -> "ColorSummary":
        return cls()

    def as_dict(self) -> dict[str, float]:
        return {"r": self.r, "g": self.g, "b": self.b, "grayscale": self.grayscale}


@dataclass(frozen=True)
class TrendEntry:
    time_offset: int
    summary: ColorSummary
    rate_of_change: float = 0.0


@dataclass(frozen=True)
class TrendReport:
    entries: list[TrendEntry] = field(default_factory=list)
    total_rate_of_change: float = 0.0


@dataclass(frozen=True)
class StripSample:
    """One photographed strip plus the days-past-event offset the user entered."""
    path: Path
    time_offset: int | None = None
    rect: Rect | None = None


class LineDetector(Protocol):
    """Detector plugin interface (dark-region, redness, ...)."""
    def detect(self, raster: PixelRaster) -> LineSelection:
        ...
