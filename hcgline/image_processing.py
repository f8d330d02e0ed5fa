# hcgline/image_processing.py
import numpy as np
from scipy.ndimage import uniform_filter1d


# ITU-R BT.601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


# =============================================================================
# SHARED RASTER HELPERS
# =============================================================================
def to_luminance(rgb):
    """(H, W, 3) uint8 -> (H, W) float64 luma. Darker line = LOWER value."""
    px = rgb.astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    return px[..., 0] * wr + px[..., 1] * wg + px[..., 2] * wb


def interior_bounds(width, height, margin):
    """
    Bounds (x0, y0, x1, y1) of the raster after trimming `margin` pixels on
    every side, x1/y1 exclusive. None when nothing is left.
    """
    margin = max(0, int(margin))
    if width < 2 * margin + 1 or height < 2 * margin + 1:
        return None
    return margin, margin, width - margin, height - margin


def to_raster_index(local_idx, bounds, width):
    """Map flat indices of an interior sub-array back to flat raster indices."""
    x0, y0, x1, _ = bounds
    ys, xs = np.divmod(np.asarray(local_idx, dtype=np.int64), x1 - x0)
    return (ys + y0) * width + (xs + x0)


# =============================================================================
# DARK REGION SEGMENTATION
# =============================================================================
def percentile_value(sorted_values, fraction):
    """Value at floor(n * fraction) of an already-sorted 1D array."""
    n = sorted_values.shape[0]
    idx = min(n - 1, int(np.floor(n * fraction)))
    return float(sorted_values[idx])


def dark_threshold(lum, percentile=0.15, fallback_percentile=0.05, uniform_cutoff=180.0):
    """
    Luminance threshold at a low percentile of the image.

    If the cut lands above `uniform_cutoff` the crop is mostly light
    background, so a stricter percentile is used instead.
    """
    values = np.sort(lum, axis=None)
    threshold = percentile_value(values, percentile)
    if threshold > uniform_cutoff:
        threshold = percentile_value(values, fallback_percentile)
    return threshold


def flood_fill(mask, visited, start, width, height):
    """
    Iterative 4-connected flood fill from flat index `start`.

    mask    : flat sequence of bools, True = candidate pixel
    visited : flat bytearray, updated in place

    Returns the flat indices of the filled region.
    """
    stack = [start]
    region = []

    while stack:
        idx = stack.pop()
        if visited[idx] or not mask[idx]:
            continue

        visited[idx] = 1
        region.append(idx)

        y, x = divmod(idx, width)
        if x + 1 < width:
            stack.append(idx + 1)
        if x > 0:
            stack.append(idx - 1)
        if y + 1 < height:
            stack.append(idx + width)
        if y > 0:
            stack.append(idx - width)

    return region


def largest_dark_component(lum, threshold):
    """
    Flat indices (sorted) of the largest 4-connected group of pixels with
    luminance <= threshold. On equal sizes the first one found in row-major
    order wins.
    """
    h, w = lum.shape
    mask_arr = (lum <= threshold).ravel()
    mask = mask_arr.tolist()
    visited = bytearray(h * w)

    largest = []
    for idx in np.flatnonzero(mask_arr).tolist():
        if visited[idx]:
            continue
        region = flood_fill(mask, visited, idx, w, h)
        if len(region) > len(largest):
            largest = region

    return np.sort(np.asarray(largest, dtype=np.int64))


def darkest_pixels(lum, fraction=0.20):
    """Flat indices of the darkest `fraction` of pixels (at least one)."""
    n = lum.size
    if n == 0:
        return np.zeros(0, dtype=np.int64)
    order = np.argsort(lum, axis=None, kind="stable")
    count = max(1, int(n * fraction))
    return order[:count].astype(np.int64)


# =============================================================================
# REDNESS LINE FOLLOWING
# =============================================================================
def redness_score(rgb, margin=5, dark_mean_cutoff=220.0, pink_tolerance=50.0, excess_weight=0.5):
    """
    Per-pixel "looks like line material" score. Higher = more line-like.

    A pixel scores only if it is darker than background (channel mean below
    `dark_mean_cutoff`) AND red-dominant or pinkish. Then

        score = (255 - mean) + excess_weight * (R - (G + B) / 2)

    Pixels inside the edge margin always score 0.
    """
    px = rgb.astype(np.float64)
    r, g, b = px[..., 0], px[..., 1], px[..., 2]
    mean = (r + g + b) / 3.0

    dark = mean < dark_mean_cutoff
    red_dominant = (r > g) & (r > b)
    pinkish = (np.abs(r - g) < pink_tolerance) & (r > b)

    excess = r - (g + b) / 2.0
    score = np.where(dark & (red_dominant | pinkish), (255.0 - mean) + excess_weight * excess, 0.0)

    h, w = score.shape
    m = max(0, int(margin))
    if m > 0:
        score[:m, :] = 0.0
        score[h - m:, :] = 0.0
        score[:, :m] = 0.0
        score[:, w - m:] = 0.0

    return score


def row_centers(score, bounds, window=5, min_score=5.0):
    """
    For each interior row, the column whose +/- `window` averaged score is
    largest. Rows whose best average is <= `min_score` get NaN.

    Columns outside the raster count as 0 in the average. A line narrower
    than the window gives a plateau of equal averages; ties go to the
    column with the larger raw score, then the leftmost.
    """
    x0, y0, x1, y1 = bounds
    windowed = uniform_filter1d(score, size=2 * int(window) + 1, axis=1, mode="constant", cval=0.0)
    inner = windowed[y0:y1, x0:x1]

    peak = inner.max(axis=1)
    raw = np.where(inner == peak[:, None], score[y0:y1, x0:x1], -np.inf)
    best = np.argmax(raw, axis=1)

    centers = np.full(inner.shape[0], np.nan)
    ok = peak > min_score
    centers[ok] = best[ok] + x0
    return centers


def fill_missing_centers(centers, reach=10, default=0.0):
    """
    Replace NaN centers from the nearest defined neighbor(s) within `reach`
    rows: average of above and below if both exist, else whichever exists,
    else `default`.
    """
    filled = centers.copy()
    defined = ~np.isnan(centers)
    n = centers.shape[0]

    for i in np.flatnonzero(~defined):
        above = below = None
        for d in range(1, reach + 1):
            if i - d >= 0 and defined[i - d]:
                above = centers[i - d]
                break
        for d in range(1, reach + 1):
            if i + d < n and defined[i + d]:
                below = centers[i + d]
                break

        if above is not None and below is not None:
            filled[i] = 0.5 * (above + below)
        elif above is not None:
            filled[i] = above
        elif below is not None:
            filled[i] = below
        else:
            filled[i] = default

    return filled


def smooth_centers(centers, radius=3):
    """Centered moving average over +/- radius rows (edge rows repeated)."""
    if centers.shape[0] == 0 or radius <= 0:
        return centers.copy()
    return uniform_filter1d(centers.astype(np.float64), size=2 * int(radius) + 1, mode="nearest")


def adaptive_row_window(
    score_row,
    center,
    x0,
    x1,
    max_half_width=8,
    stop_ratio=0.3,
    accept_ratio=0.25,
    min_threshold=2.0,
):
    """
    Walk left and right from `center` (at most `max_half_width` px, never
    leaving [x0, x1)) until the score drops below max(min_threshold,
    center_score * stop_ratio). Of the covered columns, return those scoring
    above max(min_threshold, center_score * accept_ratio).
    """
    center_score = float(score_row[center])
    stop = max(min_threshold, center_score * stop_ratio)
    accept = max(min_threshold, center_score * accept_ratio)

    left = center
    for d in range(1, max_half_width + 1):
        x = center - d
        if x < x0 or score_row[x] < stop:
            break
        left = x

    right = center
    for d in range(1, max_half_width + 1):
        x = center + d
        if x >= x1 or score_row[x] < stop:
            break
        right = x

    cols = np.arange(left, right + 1)
    return cols[score_row[left:right + 1] > accept]


def top_scoring_pixels(score, fraction=0.15):
    """Flat indices of the top `fraction` of positive-score pixels, best first."""
    flat = score.ravel()
    positive = np.flatnonzero(flat > 0)
    if positive.size == 0:
        return np.zeros(0, dtype=np.int64)
    order = np.argsort(-flat[positive], kind="stable")
    count = max(1, int(positive.size * fraction))
    return positive[order[:count]].astype(np.int64)
