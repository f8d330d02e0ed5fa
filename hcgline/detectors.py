# hcgline/detectors.py
from __future__ import annotations
import logging

import numpy as np

from . import image_processing as ip
from .config import DarkRegionConfig, RednessConfig
from .models import LineDetector, LineSelection, PixelRaster

logger = logging.getLogger(__name__)


class DarkRegionDetector:
    """
    Global darkest-region segmentation.

    Works by:
    1. Converting the crop to luma
    2. Thresholding at a low luminance percentile
    3. Keeping the largest 4-connected dark component (the line itself,
       not specks or print elsewhere in the crop)
    4. Falling back to the darkest pixels if no component exists
    """

    def __init__(self, config: DarkRegionConfig | None = None):
        self.config = config or DarkRegionConfig()

    def detect(self, raster: PixelRaster) -> LineSelection:
        cfg = self.config
        bounds = ip.interior_bounds(raster.width, raster.height, cfg.edge_margin)
        if bounds is None:
            logger.debug("Raster %dx%d has no interior, nothing to detect", raster.width, raster.height)
            return LineSelection.empty()

        x0, y0, x1, y1 = bounds
        lum = ip.to_luminance(raster.rgb[y0:y1, x0:x1])

        threshold = ip.dark_threshold(
            lum,
            percentile=cfg.percentile,
            fallback_percentile=cfg.fallback_percentile,
            uniform_cutoff=cfg.uniform_cutoff,
        )
        region = ip.largest_dark_component(lum, threshold)
        logger.debug("Dark threshold %.2f -> largest component %d px", threshold, region.size)

        if region.size == 0:
            region = ip.darkest_pixels(lum, cfg.darkest_fraction)
            logger.debug("No dark component, using darkest %d px", region.size)

        return LineSelection.from_flat(raster, ip.to_raster_index(region, bounds, raster.width))


class RednessLineDetector:
    """
    Redness-weighted vertical line following.

    Scores every pixel for red/pink darkness, follows the line center row
    by row, then grows an adaptive window around the center in each row.
    Handles faint pink lines better than pure darkness.
    """

    def __init__(self, config: RednessConfig | None = None):
        self.config = config or RednessConfig()

    def _score(self, raster: PixelRaster) -> np.ndarray:
        cfg = self.config
        return ip.redness_score(
            raster.rgb,
            margin=cfg.edge_margin,
            dark_mean_cutoff=cfg.dark_mean_cutoff,
            pink_tolerance=cfg.pink_tolerance,
            excess_weight=cfg.excess_weight,
        )

    def _follow_rows(self, score: np.ndarray, bounds) -> tuple[np.ndarray, int]:
        cfg = self.config
        x0, y0, x1, y1 = bounds
        width = score.shape[1]

        centers = ip.row_centers(score, bounds, window=cfg.row_window, min_score=cfg.min_row_score)
        centers = ip.fill_missing_centers(centers, reach=cfg.fill_reach, default=width // 2)
        centers = ip.smooth_centers(centers, radius=cfg.smooth_radius)

        visited = np.zeros(score.size, dtype=bool)
        accepted = []
        rows_hit = 0

        for i, c in enumerate(centers):
            y = y0 + i
            center = min(max(int(round(c)), x0), x1 - 1)
            cols = ip.adaptive_row_window(
                score[y],
                center,
                x0,
                x1,
                max_half_width=cfg.max_half_width,
                stop_ratio=cfg.stop_ratio,
                accept_ratio=cfg.accept_ratio,
                min_threshold=cfg.min_threshold,
            )

            hit = False
            for x in cols.tolist():
                idx = y * width + x
                if visited[idx]:
                    continue
                visited[idx] = True
                accepted.append(idx)
                hit = True
            if hit:
                rows_hit += 1

        return np.asarray(accepted, dtype=np.int64), rows_hit

    def detect(self, raster: PixelRaster) -> LineSelection:
        cfg = self.config
        bounds = ip.interior_bounds(raster.width, raster.height, cfg.edge_margin)
        if bounds is None:
            logger.debug("Raster %dx%d has no interior, nothing to detect", raster.width, raster.height)
            return LineSelection.empty()

        score = self._score(raster)
        accepted, rows_hit = self._follow_rows(score, bounds)

        n_rows = bounds[3] - bounds[1]
        if rows_hit < cfg.min_row_fraction * n_rows:
            accepted = ip.top_scoring_pixels(score, cfg.fallback_top_fraction)
            logger.debug(
                "Only %d/%d rows followed, using top %d scoring px",
                rows_hit, n_rows, accepted.size,
            )

        return LineSelection.from_flat(raster, accepted)


DETECTORS = {
    "dark": (DarkRegionDetector, DarkRegionConfig),
    "redness": (RednessLineDetector, RednessConfig),
}


def make_detector(name: str = "dark", config=None) -> LineDetector:
    """Build a detector by strategy name ("dark" or "redness")."""
    try:
        detector_cls, config_cls = DETECTORS[name]
    except KeyError:
        raise ValueError(f"strategy must be one of {sorted(DETECTORS)}, got {name!r}") from None

    if config is not None and not isinstance(config, config_cls):
        raise ValueError(f"{name!r} detector expects {config_cls.__name__}, got {type(config).__name__}")
    return detector_cls(config)
