# hcgline/config.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DarkRegionConfig:
    # Luminance percentile used as the dark threshold
    percentile: float = 0.15
    # Used instead when the first cut lands on light background
    fallback_percentile: float = 0.05
    uniform_cutoff: float = 180.0

    # No connected component -> take this share of the darkest pixels
    darkest_fraction: float = 0.20

    edge_margin: int = 0


@dataclass(frozen=True)
class RednessConfig:
    edge_margin: int = 5

    # Pixel scoring
    dark_mean_cutoff: float = 220.0
    pink_tolerance: float = 50.0
    excess_weight: float = 0.5

    # Row center search
    row_window: int = 5
    min_row_score: float = 5.0
    fill_reach: int = 10
    smooth_radius: int = 3

    # Adaptive width around the center
    max_half_width: int = 8
    stop_ratio: float = 0.3
    accept_ratio: float = 0.25
    min_threshold: float = 2.0

    # Too few rows followed -> rank positive pixels instead
    min_row_fraction: float = 0.10
    fallback_top_fraction: float = 0.15


@dataclass(frozen=True)
class AppConfig:
    strategy: str = "dark"

    # Logging
    logging_level: str = "INFO"

    # Optional outputs
    plot_path: Path | None = None
    debug_dir: Path | None = None
