# hcgline/__init__.py
from .models import (
    ColorSummary,
    LineDetector,
    LineSelection,
    PixelRaster,
    Rect,
    StripSample,
    TrendEntry,
    TrendReport,
)
from .config import AppConfig, DarkRegionConfig, RednessConfig
from .detectors import DarkRegionDetector, RednessLineDetector, make_detector
from .analysis import aggregate, analyze_raster, analyze_sample, run_batch
from .region import crop, crop_to_mask, load_raster, mask_to_rect
from .trend import reduce_trend

__version__ = "0.1.0"
