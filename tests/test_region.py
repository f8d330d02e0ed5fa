import cv2
import numpy as np
import pytest
from PIL import Image as PILImage

from hcgline.models import PixelRaster, Rect
from hcgline.region import crop, crop_to_mask, load_raster, mask_to_rect

from .conftest import RED, make_raster, paint


def test_load_raster_converts_to_rgba(write_image):
    rgb = paint(make_raster(8, 6), 2, 1, 3, 2, RED)
    raster = load_raster(write_image(rgb))
    assert (raster.width, raster.height) == (8, 6)
    assert raster.rgba[1, 2].tolist() == [255, 0, 0, 255]
    assert raster.rgba[0, 0].tolist() == [255, 255, 255, 255]


def test_load_raster_keeps_alpha(tmp_path):
    bgra = np.zeros((4, 4, 4), dtype=np.uint8)
    bgra[:, :] = (0, 0, 255, 128)
    path = tmp_path / "alpha.png"
    cv2.imwrite(str(path), bgra)
    assert load_raster(path).rgba[0, 0].tolist() == [255, 0, 0, 128]


def test_load_raster_grayscale(tmp_path):
    path = tmp_path / "gray.png"
    cv2.imwrite(str(path), np.full((3, 5), 77, dtype=np.uint8))
    raster = load_raster(path)
    assert raster.rgba[2, 4].tolist() == [77, 77, 77, 255]


def test_load_raster_applies_exif_rotation(tmp_path):
    # stored 40 wide x 20 tall, red block in the stored top-left corner
    rgb = paint(make_raster(40, 20), 0, 0, 8, 8, RED)
    exif = PILImage.Exif()
    exif[0x0112] = 6   # Orientation: rotate 90 CW to display
    path = tmp_path / "phone.jpg"
    PILImage.fromarray(rgb).save(path, exif=exif, quality=95)

    raster = load_raster(path)
    assert (raster.width, raster.height) == (20, 40)
    # stored top-left lands top-right once rotated clockwise
    r, g, b, _ = raster.rgba[3, 16].tolist()
    assert r > 200 and g < 60 and b < 60
    assert raster.rgba[3, 3, 1] > 200


def test_load_raster_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_raster(tmp_path / "nope.png")


def test_crop_cuts_native_rect():
    rgb = paint(make_raster(20, 10), 5, 2, 4, 3, RED)
    out = crop(PixelRaster.from_array(rgb), Rect(5, 2, 4, 3))
    assert (out.width, out.height) == (4, 3)
    assert np.all(out.rgb == RED)


def test_crop_rejects_rect_outside_image():
    raster = PixelRaster.from_array(make_raster(20, 10))
    with pytest.raises(ValueError, match="does not fit"):
        crop(raster, Rect(15, 0, 10, 5))


def test_zero_area_crop():
    raster = PixelRaster.from_array(make_raster(20, 10))
    out = crop(raster, Rect(3, 3, 0, 4))
    assert out.width == 0 and out.height == 4


def test_mask_to_rect_scales_to_native():
    # display canvas is half the native size
    mask = np.zeros((50, 100), dtype=bool)
    mask[10:20, 30:40] = True
    assert mask_to_rect(mask, (200, 100)) == Rect(60, 20, 20, 20)


def test_mask_to_rect_uneven_scale_clamps():
    mask = np.zeros((30, 40), dtype=np.uint8)
    mask[25:30, 35:40] = 255
    rect = mask_to_rect(mask, (101, 77))
    assert rect.x + rect.width <= 101 and rect.y + rect.height <= 77
    assert rect.x + rect.width == 101 and rect.y + rect.height == 77


def test_mask_to_rect_empty_mask():
    assert mask_to_rect(np.zeros((10, 10)), (100, 100)) is None


def test_mask_to_rect_rejects_bad_shape():
    with pytest.raises(ValueError):
        mask_to_rect(np.zeros((4, 4, 3)), (10, 10))


def test_crop_to_mask():
    rgb = paint(make_raster(40, 20), 10, 4, 8, 6, RED)
    raster = PixelRaster.from_array(rgb)
    mask = np.zeros((20, 40), dtype=bool)
    mask[4:10, 10:18] = True
    out = crop_to_mask(raster, mask)
    assert (out.width, out.height) == (8, 6)
    assert np.all(out.rgb == RED)


def test_crop_to_empty_mask_gives_empty_raster():
    raster = PixelRaster.from_array(make_raster(40, 20))
    out = crop_to_mask(raster, np.zeros((20, 40), dtype=bool))
    assert out.width == 0 and out.height == 0
