# hcgline/main.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .analysis import run_batch
from .config import AppConfig
from .detectors import DETECTORS, make_detector
from .models import StripSample
from .utils import parse_rect, setup_logging
from .visualization import plot_detection, plot_trend

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def parse_sample(text: str) -> StripSample:
    """
    "PATH:OFFSET" or "PATH:OFFSET:X,Y,W,H" -> StripSample
    """
    parts = text.rsplit(":", 2)
    rect = None
    if len(parts) == 3 and "," in parts[2]:
        path, offset, rect_text = parts
        rect = parse_rect(rect_text)
    else:
        path, sep, offset = text.rpartition(":")
        if not sep or not path:
            raise argparse.ArgumentTypeError(f"Expected PATH:OFFSET[:X,Y,W,H], got {text!r}")
    try:
        time_offset = int(offset)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Time offset must be an integer, got {offset!r}") from None
    return StripSample(path=Path(path), time_offset=time_offset, rect=rect)


def _sample_arg(text: str) -> StripSample:
    try:
        return parse_sample(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def print_trend_report(report, records):
    """
    Results table: offset, average RGB, grayscale, signed rate of change.
    """
    print("\n" + "=" * 72)
    print("LINE INTENSITY RESULTS")
    print("=" * 72)
    print(f"{'DPO':>5}  {'Average RGB':<36} {'Grayscale':>10} {'Rate':>10}")
    print("-" * 72)

    for e in report.entries:
        s = e.summary
        rgb = f"R: {s.r:.2f}, G: {s.g:.2f}, B: {s.b:.2f}"
        print(f"{e.time_offset:>5}  {rgb:<36} {s.grayscale:>10.2f} {e.rate_of_change:>+10.2f}")

    if len(report.entries) > 1:
        print("-" * 72)
        print(f"{'Total Rate of Change':<54} {report.total_rate_of_change:>+10.2f}")

    failed = [r for r in records if r["status"] == "ERROR"]
    empty = [r for r in records if r["status"] == "EMPTY"]
    if empty:
        print("\nNo line pixels found (summary is all zero):")
        for r in empty:
            print(f"  {r['sample'].path}")
    if failed:
        print("\nSamples that could not be analyzed:")
        for r in failed:
            print(f"  {r['sample'].path}: {r['error']}")

    print("=" * 72 + "\n")


def run(cfg: AppConfig, samples: list[StripSample]) -> int:
    setup_logging(cfg.logging_level)

    detector = make_detector(cfg.strategy)
    report, records = run_batch(samples, detector, skip_errors=True)

    print_trend_report(report, records)

    if cfg.debug_dir is not None:
        cfg.debug_dir.mkdir(parents=True, exist_ok=True)
        for i, r in enumerate(records):
            if r["status"] == "ERROR" or r["raster"].width == 0 or r["raster"].height == 0:
                continue
            s = r["sample"]
            fig = plot_detection(
                r["raster"], r["selection"], r["summary"],
                title=f"{s.path.name} (DPO {s.time_offset})",
                save_path=cfg.debug_dir / f"{i:02d}_{s.path.stem}_dpo{s.time_offset}.png",
            )
            plt.close(fig)

    if cfg.plot_path is not None and report.entries:
        fig = plot_trend(report, save_path=cfg.plot_path)
        plt.close(fig)

    return 1 if any(r["status"] == "ERROR" for r in records) else 0


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="hcgline",
        description="Track test-line color intensity across strip photos taken on different days.",
    )
    p.add_argument(
        "samples", nargs="+", type=_sample_arg,
        help="PATH:OFFSET or PATH:OFFSET:X,Y,W,H (crop in image pixels)",
    )
    p.add_argument("--strategy", choices=sorted(DETECTORS), default="dark", help="Line detection heuristic")
    p.add_argument("--plot", default=None, help="Save the trend plot to this file")
    p.add_argument("--debug-dir", default=None, help="Save per-image detection overlays here")
    p.add_argument(
        "--log-level", type=str.upper, choices=LOG_LEVELS, default="WARNING", help="Logging level",
    )
    args = p.parse_args(argv)

    cfg = AppConfig(
        strategy=args.strategy,
        logging_level=args.log_level,
        plot_path=(None if args.plot is None else Path(args.plot)),
        debug_dir=(None if args.debug_dir is None else Path(args.debug_dir)),
    )
    return cfg, args.samples


def main(argv=None) -> int:
    cfg, samples = parse_args(argv)
    return run(cfg, samples)


if __name__ == "__main__":
    sys.exit(main())
