"""
Score to color/category mapping.

Bands are checked highest threshold first and each threshold is an exclusive
lower bound, so a score of exactly 80 falls into the ">60" band. Anything that
matches no threshold (including NaN) lands in the last, open-ended band.
"""
from __future__ import annotations

from typing import List, Tuple

from domain.models import ColorBand, ScoreCategory

SCORE_COLOR_BANDS: List[ColorBand] = [
    ColorBand(threshold=80, color="#10b981"),  # green
    ColorBand(threshold=60, color="#06b6d4"),  # cyan
    ColorBand(threshold=40, color="#f59e0b"),  # amber
    ColorBand(threshold=None, color="#ef4444"),  # red
]

SCORE_CATEGORY_BANDS: List[Tuple[float | None, ScoreCategory]] = [
    (85, ScoreCategory.HIGHLY_TRUSTWORTHY),
    (70, ScoreCategory.VERY_TRUSTWORTHY),
    (55, ScoreCategory.TRUSTWORTHY),
    (40, ScoreCategory.NEUTRAL),
    (None, ScoreCategory.GUARDED),
]


def score_to_band(score: float) -> ColorBand:
    for band in SCORE_COLOR_BANDS:
        if band.threshold is None or score > band.threshold:
            return band
    return SCORE_COLOR_BANDS[-1]


def score_to_color(score: float) -> str:
    """Hex color for a score; used for the headline score and each metric bar."""
    return score_to_band(score).color


def score_to_category(score: float) -> str:
    """Human-readable trust label for a score."""
    for threshold, category in SCORE_CATEGORY_BANDS:
        if threshold is None or score > threshold:
            return category.value
    return SCORE_CATEGORY_BANDS[-1][1].value
