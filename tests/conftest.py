import matplotlib
matplotlib.use("Agg")

import cv2
import numpy as np
import pytest

from hcgline.models import PixelRaster

WHITE = (255, 255, 255)
RED = (255, 0, 0)


def make_raster(width, height, color=WHITE):
    rgb = np.empty((height, width, 3), dtype=np.uint8)
    rgb[:, :] = color
    return rgb


def paint(rgb, x, y, w, h, color):
    rgb[y:y + h, x:x + w] = color
    return rgb


@pytest.fixture
def red_rect_raster():
    """40x40 white crop with a 10x20 red block at (10, 5)."""
    rgb = paint(make_raster(40, 40), 10, 5, 10, 20, RED)
    return PixelRaster.from_array(rgb)


@pytest.fixture
def red_line_raster():
    """60x60 white crop with a 5 px wide vertical red line, rows 10..49."""
    rgb = paint(make_raster(60, 60), 25, 10, 5, 40, RED)
    return PixelRaster.from_array(rgb)


@pytest.fixture
def write_image(tmp_path):
    """Write an RGB array as PNG and return its path."""
    def _write(rgb, name="strip.png"):
        path = tmp_path / name
        cv2.imwrite(str(path), cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
        return path
    return _write
