import numpy as np
import pytest

from hcgline.analysis import aggregate, analyze_raster, analyze_sample, run_batch
from hcgline.detectors import make_detector
from hcgline.models import ColorSummary, LineSelection, PixelRaster, Rect, StripSample

from .conftest import RED, make_raster, paint


def _selection(rgb_values):
    px = np.array([list(v) + [255] for v in rgb_values], dtype=np.uint8)
    n = px.shape[0]
    return LineSelection(xs=np.arange(n), ys=np.zeros(n, dtype=int), pixels=px)


def test_aggregate_means_and_luma_of_means():
    summary = aggregate(_selection([(255, 0, 0), (0, 0, 255), (0, 60, 0)]))
    assert summary.r == pytest.approx(85.0)
    assert summary.g == pytest.approx(20.0)
    assert summary.b == pytest.approx(85.0)
    assert summary.grayscale == pytest.approx(0.299 * summary.r + 0.587 * summary.g + 0.114 * summary.b)


def test_aggregate_ignores_alpha():
    sel = _selection([(10, 20, 30)])
    sel.pixels[0, 3] = 0
    assert aggregate(sel) == ColorSummary(10.0, 20.0, 30.0, 0.299 * 10 + 0.587 * 20 + 0.114 * 30)


def test_aggregate_empty_is_zero():
    assert aggregate(LineSelection.empty()) == ColorSummary(0.0, 0.0, 0.0, 0.0)


def test_analyze_raster_defaults_to_dark_region(red_rect_raster):
    summary, selection = analyze_raster(red_rect_raster)
    assert selection.bbox() == Rect(10, 5, 10, 20)
    assert summary.grayscale == pytest.approx(0.299 * 255)


def test_analyze_raster_is_repeatable(red_line_raster):
    det = make_detector("redness")
    first, _ = analyze_raster(red_line_raster, det)
    second, _ = analyze_raster(red_line_raster, det)
    assert first == second


def test_analyze_sample_applies_crop(write_image):
    rgb = paint(make_raster(60, 40), 30, 10, 6, 20, RED)
    rgb[0:5, 0:5] = (0, 0, 0)   # dark print outside the crop
    path = write_image(rgb)

    summary, selection, raster = analyze_sample(StripSample(path, 1, Rect(20, 0, 30, 40)))
    assert (raster.width, raster.height) == (30, 40)
    assert selection.bbox() == Rect(10, 10, 6, 20)
    assert (summary.r, summary.g, summary.b) == (255.0, 0.0, 0.0)


def test_run_batch_orders_by_offset_and_reduces(write_image):
    dark = write_image(make_raster(20, 20, (100, 100, 100)), "dark.png")
    light = write_image(make_raster(20, 20, (200, 200, 200)), "light.png")

    samples = [StripSample(light, 5), StripSample(dark, 2)]
    report, records = run_batch(samples)

    assert [r["sample"].time_offset for r in records] == [2, 5]
    assert [e.time_offset for e in report.entries] == [2, 5]
    assert report.entries[0].rate_of_change == 0.0
    assert report.entries[1].rate_of_change == pytest.approx(100.0)
    assert report.total_rate_of_change == pytest.approx(100.0)


def test_run_batch_requires_every_offset(write_image):
    path = write_image(make_raster(20, 20))
    with pytest.raises(ValueError, match="Missing time offset"):
        run_batch([StripSample(path, 1), StripSample(path, None)])


def test_run_batch_raises_on_unreadable_image(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_batch([StripSample(tmp_path / "missing.png", 1)])


def test_run_batch_can_skip_failures(tmp_path, write_image):
    good = write_image(make_raster(20, 20, (90, 90, 90)))
    report, records = run_batch(
        [StripSample(tmp_path / "missing.png", 1), StripSample(good, 3)],
        skip_errors=True,
    )
    assert [r["status"] for r in records] == ["ERROR", "OK"]
    assert "missing.png" in records[0]["error"]
    assert len(report.entries) == 1
    assert report.total_rate_of_change == 0.0


def test_run_batch_marks_empty_detections(write_image):
    path = write_image(make_raster(30, 30))
    report, records = run_batch([StripSample(path, 0)], make_detector("redness"))
    assert records[0]["status"] == "EMPTY"
    assert report.entries[0].summary == ColorSummary.zero()


def test_zero_area_crop_gives_zero_summary():
    raster = PixelRaster.from_array(make_raster(20, 20, RED))
    empty = PixelRaster(raster.rgba[0:0, 0:0])
    summary, selection = analyze_raster(empty)
    assert selection.is_empty
    assert summary == ColorSummary.zero()
