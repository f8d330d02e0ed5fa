# hcgline/analysis.py
from __future__ import annotations
import logging

from .detectors import make_detector
from .image_processing import LUMA_WEIGHTS
from .models import ColorSummary, LineDetector, LineSelection, PixelRaster, StripSample, TrendReport
from .region import crop, load_raster
from .trend import reduce_trend

logger = logging.getLogger(__name__)


def aggregate(selection: LineSelection) -> ColorSummary:
    """
    Mean R, G, B over the selection. Grayscale is the luma of the three
    means, not the mean of per-pixel luma. Empty selection -> zeros.
    """
    n = len(selection)
    if n == 0:
        return ColorSummary.zero()

    px = selection.pixels
    r = float(px[:, 0].sum(dtype="float64")) / n
    g = float(px[:, 1].sum(dtype="float64")) / n
    b = float(px[:, 2].sum(dtype="float64")) / n

    wr, wg, wb = LUMA_WEIGHTS
    return ColorSummary(r=r, g=g, b=b, grayscale=wr * r + wg * g + wb * b)


def analyze_raster(raster: PixelRaster, detector: LineDetector | None = None):
    """
    Detect the line in one crop and summarize its color.

    Returns
    -------
    (summary, selection) : (ColorSummary, LineSelection)
    """
    detector = detector or make_detector()
    selection = detector.detect(raster)
    return aggregate(selection), selection


def analyze_sample(sample: StripSample, detector: LineDetector | None = None):
    """Load, crop (if the sample has a rect) and analyze one strip photo."""
    raster = load_raster(sample.path)
    if sample.rect is not None:
        raster = crop(raster, sample.rect)
    summary, selection = analyze_raster(raster, detector)
    return summary, selection, raster


def run_batch(samples: list[StripSample], detector: LineDetector | None = None, skip_errors=False):
    """
    Analyze every sample in time-offset order, then reduce the trend.

    Every sample needs a time offset before anything runs. With
    skip_errors=True a sample that fails to load/crop is recorded with
    status "ERROR" and left out of the trend.

    Returns
    -------
    report  : TrendReport
    records : list of dicts, one per sample, in processing order
    """
    missing = [str(s.path) for s in samples if s.time_offset is None]
    if missing:
        raise ValueError(f"Missing time offset for: {', '.join(missing)}")

    detector = detector or make_detector()
    ordered = sorted(samples, key=lambda s: s.time_offset)

    records = []
    for s in ordered:
        logger.info("Processing %s (offset %s)", s.path, s.time_offset)
        try:
            summary, selection, raster = analyze_sample(s, detector)
        except (FileNotFoundError, ValueError) as e:
            if not skip_errors:
                raise
            logger.error("Failed on %s: %s", s.path, e)
            records.append({"sample": s, "status": "ERROR", "error": str(e)})
            continue

        logger.info(
            "  -> %d px, RGB=(%.2f, %.2f, %.2f) gray=%.2f",
            len(selection), summary.r, summary.g, summary.b, summary.grayscale,
        )
        records.append({
            "sample": s,
            "status": "OK" if len(selection) else "EMPTY",
            "summary": summary,
            "selection": selection,
            "raster": raster,
        })

    # trend only once every summary is in
    pairs = [(r["sample"].time_offset, r["summary"]) for r in records if r["status"] != "ERROR"]
    report: TrendReport = reduce_trend(pairs)
    return report, records
