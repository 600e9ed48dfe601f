"""
Layout planning for the share card.

The card is fixed-width and variable-height: the caption is wrapped before
anything is drawn, and the canvas grows by one line height per caption line.
The caption renderer later calls ``wrap_caption`` again with the same
measuring function, so both passes produce the same lines.
"""
from __future__ import annotations

import logging
from typing import List

from domain.models import LayoutPlan, ShareCardStyle
from services.text_wrap import MeasureFn, wrap_words

logger = logging.getLogger(__name__)


def wrap_caption(caption: str, measure: MeasureFn, style: ShareCardStyle) -> List[str]:
    """Wrap the caption at the card's caption width."""
    return wrap_words(caption or "", measure, style.caption_max_width)


def canvas_height_for(line_count: int, style: ShareCardStyle) -> int:
    """Canvas height needed for ``line_count`` caption lines (at least the reserved minimum)."""
    reserved = max(line_count, style.min_caption_lines)
    return style.base_height + reserved * style.caption_line_height


def plan_layout(caption: str, measure: MeasureFn, style: ShareCardStyle) -> LayoutPlan:
    """
    Measure the caption and fix the canvas size.

    Args:
        caption: Free-form caption text
        measure: Width function of the caption font
        style: Card geometry

    Returns:
        LayoutPlan with the fixed canvas width, the height that fits exactly
        the caption's lines, and the number of lines the renderer may draw.
    """
    lines = wrap_caption(caption, measure, style)
    line_count = min(len(lines), style.max_caption_lines)
    if line_count < len(lines):
        logger.info(
            "[share-card] caption needs %s lines; capped at %s", len(lines), style.max_caption_lines
        )
    plan = LayoutPlan(
        canvas_width=style.canvas_width,
        canvas_height=canvas_height_for(line_count, style),
        caption_line_count=line_count,
    )
    logger.debug("[share-card] plan=%s", plan)
    return plan
