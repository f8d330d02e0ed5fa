# hcgline/trend.py
from __future__ import annotations

from .models import ColorSummary, TrendEntry, TrendReport


def reduce_trend(pairs: list[tuple[int, ColorSummary]]) -> TrendReport:
    """
    Order (time_offset, summary) pairs by offset and compute grayscale deltas.

    rate_of_change[i] = grayscale[i] - grayscale[i-1]   (0 for the first)
    total             = grayscale[last] - grayscale[first]  (0 if < 2 entries)

    Ties in time_offset keep their input order.
    """
    ordered = sorted(pairs, key=lambda p: p[0])

    entries: list[TrendEntry] = []
    prev = None
    for offset, summary in ordered:
        rate = 0.0 if prev is None else summary.grayscale - prev.grayscale
        entries.append(TrendEntry(time_offset=int(offset), summary=summary, rate_of_change=rate))
        prev = summary

    total = 0.0
    if len(entries) > 1:
        total = entries[-1].summary.grayscale - entries[0].summary.grayscale

    return TrendReport(entries=entries, total_rate_of_change=total)
