# hcgline/visualization.py
import logging

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

logger = logging.getLogger(__name__)


def plot_detection(raster, selection, summary=None, title=None, save_path=None, show=False):
    """2-panel view: the crop, and the crop with detected line pixels marked"""
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 5))

    # Panel 1: crop as handed to the detector
    ax1.imshow(raster.rgb)
    ax1.set_title("Crop", fontsize=13)
    ax1.axis("off")

    # Panel 2: selected pixels in green
    overlay = raster.rgb.copy()
    if len(selection):
        overlay[selection.ys, selection.xs] = (0, 255, 0)
    ax2.imshow(overlay)

    box = selection.bbox()
    if box is not None:
        ax2.add_patch(Rectangle(
            (box.x - 0.5, box.y - 0.5), box.width, box.height,
            fill=False, edgecolor="cyan", linewidth=1.5,
        ))
    ax2.set_title(f"Detected line ({len(selection)} px)", fontsize=13)
    ax2.axis("off")

    if summary is not None:
        swatch = (summary.r / 255.0, summary.g / 255.0, summary.b / 255.0)
        fig.add_artist(Rectangle(
            (0.90, 0.02), 0.08, 0.08, transform=fig.transFigure,
            facecolor=swatch, edgecolor="black",
        ))
        ax2.set_xlabel(f"gray = {summary.grayscale:.2f}")

    if title:
        fig.suptitle(title, fontsize=14, fontweight="bold")

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
        logger.info("Detection overlay saved: %s", save_path)
    if show:
        plt.show()

    return fig


def plot_trend(report, save_path=None, show=False):
    """
    Grayscale and mean channel values against time offset.
    Lower grayscale = darker line.
    """
    offsets = [e.time_offset for e in report.entries]
    gray = [e.summary.grayscale for e in report.entries]

    fig, ax = plt.subplots(figsize=(8, 5))

    ax.plot(offsets, [e.summary.r for e in report.entries], color="tomato", linewidth=1, alpha=0.6, label="R")
    ax.plot(offsets, [e.summary.g for e in report.entries], color="seagreen", linewidth=1, alpha=0.6, label="G")
    ax.plot(offsets, [e.summary.b for e in report.entries], color="steelblue", linewidth=1, alpha=0.6, label="B")
    ax.plot(offsets, gray, color="black", linewidth=2, marker="o", label="Grayscale", zorder=3)

    for e in report.entries[1:]:
        ax.annotate(
            f"{e.rate_of_change:+.2f}",
            (e.time_offset, e.summary.grayscale),
            textcoords="offset points", xytext=(0, 8), ha="center", fontsize=9,
        )

    ax.set_xlabel("Days past event", fontsize=12)
    ax.set_ylabel("Line intensity (0-255)", fontsize=12)
    ax.set_title(
        f"Line Intensity Trend (total change {report.total_rate_of_change:+.2f})",
        fontsize=13, fontweight="bold",
    )
    ax.grid(True, linestyle="--", alpha=0.4, zorder=0)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.legend(fontsize=10)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=200, bbox_inches="tight")
        logger.info("Trend plot saved: %s", save_path)
    if show:
        plt.show()

    return fig
