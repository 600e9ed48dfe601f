"""
Font lookup for the share card.

Fonts are resolved once per (size, weight, path) and shared read-only between
calls. A configured path wins; otherwise common system sans fonts are tried,
and Pillow's bundled font is the last resort so rendering never fails for
lack of a font.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from PIL import ImageFont

logger = logging.getLogger(__name__)

_REGULAR_CANDIDATES = (
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "Arial.ttf",
)
_BOLD_CANDIDATES = (
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "Arial Bold.ttf",
)
_EMOJI_CANDIDATES = (
    "/usr/share/fonts/truetype/noto/NotoColorEmoji.ttf",
    "/usr/share/fonts/noto/NotoColorEmoji.ttf",
    "NotoColorEmoji.ttf",
)
# Bitmap color emoji fonts (CBDT) only load at their native strike size.
EMOJI_NATIVE_SIZE = 109


@lru_cache(maxsize=64)
def load_font(size: int, weight: str = "regular", path: Optional[str] = None) -> ImageFont.FreeTypeFont:
    candidates = _BOLD_CANDIDATES if weight == "bold" else _REGULAR_CANDIDATES
    if path:
        candidates = (path,) + candidates
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.warning("[share-card] no TrueType %s font found; using Pillow default at %spx", weight, size)
    return ImageFont.load_default(size=size)


@lru_cache(maxsize=4)
def load_emoji_font(path: Optional[str] = None) -> Optional[ImageFont.FreeTypeFont]:
    """Color emoji font at its native size, or None when none is installed."""
    candidates = ((path,) if path else ()) + _EMOJI_CANDIDATES
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, EMOJI_NATIVE_SIZE)
        except OSError:
            continue
    logger.info("[share-card] no color emoji font available; emoji drawn with the text font")
    return None
