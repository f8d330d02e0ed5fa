# hcgline/region.py
from __future__ import annotations
import logging
from pathlib import Path

import cv2
import numpy as np

from .models import PixelRaster, Rect

logger = logging.getLogger(__name__)


def load_raster(path: str | Path) -> PixelRaster:
    """
    Decode an image file into an RGBA raster, in the orientation it is
    displayed in (EXIF rotation applied).
    """
    path = Path(path)
    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR | cv2.IMREAD_ANYDEPTH)
    if bgr is None:
        raise FileNotFoundError(f"Image not found or unreadable: {path}")

    if bgr.dtype == np.uint16:
        bgr = (bgr // 257).astype(np.uint8)
    rgba = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)

    # IMREAD_COLOR drops alpha; take it from an as-stored decode when the
    # geometry matches (no rotation applied)
    raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if raw is not None and raw.ndim == 3 and raw.shape[2] == 4 and raw.shape[:2] == rgba.shape[:2]:
        alpha = raw[:, :, 3]
        if alpha.dtype == np.uint16:
            alpha = (alpha // 257).astype(np.uint8)
        rgba[:, :, 3] = alpha

    logger.debug("Loaded %s (%dx%d)", path.name, rgba.shape[1], rgba.shape[0])
    return PixelRaster(rgba)


def crop(raster: PixelRaster, rect: Rect) -> PixelRaster:
    """Cut `rect` (native pixels) out of the raster into a new raster."""
    if not rect.fits(raster.width, raster.height):
        raise ValueError(
            f"Crop {rect} does not fit a {raster.width}x{raster.height} image"
        )
    return PixelRaster(raster.rgba[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width])


def mask_to_rect(mask: np.ndarray, native_size: tuple[int, int]) -> Rect | None:
    """
    Bounding box of a painted mask, scaled from display to native pixels.

    mask        : (h, w) array, nonzero = painted, in display/canvas pixels
    native_size : (width, height) of the source image

    Returns None when nothing is painted.
    """
    mask = np.asarray(mask)
    if mask.ndim != 2 or mask.size == 0:
        raise ValueError(f"mask must be a non-empty 2D array, got shape {mask.shape}")

    points = cv2.findNonZero((mask > 0).astype(np.uint8))
    if points is None:
        return None

    x, y, w, h = cv2.boundingRect(points)
    native_w, native_h = native_size
    sx = native_w / float(mask.shape[1])
    sy = native_h / float(mask.shape[0])

    x0 = min(max(0, int(round(x * sx))), native_w)
    y0 = min(max(0, int(round(y * sy))), native_h)
    x1 = min(max(x0, int(round((x + w) * sx))), native_w)
    y1 = min(max(y0, int(round((y + h) * sy))), native_h)

    return Rect(x0, y0, x1 - x0, y1 - y0)


def crop_to_mask(raster: PixelRaster, mask: np.ndarray) -> PixelRaster:
    """Crop to the native-pixel bounding box of a display-space mask."""
    rect = mask_to_rect(mask, (raster.width, raster.height))
    if rect is None:
        logger.debug("Empty mask, returning zero-area crop")
        rect = Rect(0, 0, 0, 0)
    return crop(raster, rect)
