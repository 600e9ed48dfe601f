"""
Greedy word wrap shared by the layout planner and the caption renderer.

Both passes must agree on every line break, so there is exactly one wrap
implementation and it only depends on a width-measuring callable.
"""
from __future__ import annotations

from typing import Callable, List

from PIL import ImageFont

# Returns the rendered advance width of a string, in pixels.
MeasureFn = Callable[[str], float]


def wrap_words(text: str, measure: MeasureFn, max_width: float) -> List[str]:
    """
    Split ``text`` into lines no wider than ``max_width`` where possible.

    Each word is tentatively appended with a trailing space and the candidate
    is measured. A line breaks only when the candidate overflows and the
    current line already holds something, so a single over-wide word ends up
    alone on its own line rather than being split or hyphenated.
    Returned lines carry no trailing whitespace.
    """
    lines: List[str] = []
    line = ""
    for word in text.split():
        candidate = line + word + " "
        if measure(candidate) > max_width and line != "":
            lines.append(line.rstrip())
            line = word + " "
        else:
            line = candidate
    if line.strip():
        lines.append(line.rstrip())
    return lines


def font_measure(font: ImageFont.ImageFont) -> MeasureFn:
    """Measure with the font's advance width (includes trailing spaces)."""
    return font.getlength
