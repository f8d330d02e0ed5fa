# hcgline/utils.py
import logging

from .models import Rect


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def parse_rect(text: str) -> Rect:
    """"x,y,w,h" -> Rect"""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 4:
        raise ValueError(f"Expected x,y,width,height, got {text!r}")
    x, y, w, h = (int(p) for p in parts)
    return Rect(x, y, w, h)
