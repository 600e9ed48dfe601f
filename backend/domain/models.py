"""
Core domain models for the share-card compositor.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union


# Anything the portrait loader knows how to open: raw bytes, a file-like
# object, a filesystem path, a data: URL or an http(s) URL.
PortraitSource = Union[bytes, bytearray, BinaryIO, Path, str]


class ScoreCategory(str, Enum):
    """Human-readable trust category derived from a score."""
    HIGHLY_TRUSTWORTHY = "Highly Trustworthy"
    VERY_TRUSTWORTHY = "Very Trustworthy"
    TRUSTWORTHY = "Trustworthy"
    NEUTRAL = "Neutral"
    GUARDED = "Guarded"


@dataclass(frozen=True)
class ColorBand:
    """A (threshold, color) pair; a score matches when it is strictly above threshold."""
    threshold: Optional[float]
    color: str


@dataclass
class ShareRequest:
    """
    Everything needed to compose one share card.

    Scores are nominally integers in [10, 100]. They are rendered exactly as
    given: nothing here clamps or validates them.
    """
    source: PortraitSource
    score: float
    honesty: float
    reliability: float
    caption: str = ""
    emoji: str = ""


@dataclass(frozen=True)
class LayoutPlan:
    """Canvas extent and caption line count, fixed before any pixel is drawn."""
    canvas_width: int
    canvas_height: int
    caption_line_count: int

    @property
    def size(self) -> Tuple[int, int]:
        return self.canvas_width, self.canvas_height


@dataclass(frozen=True)
class CropRect:
    """Centered square region of the source portrait, in source pixels."""
    source_x: int
    source_y: int
    source_width: int
    source_height: int

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """Pillow crop box (left, upper, right, lower)."""
        return (
            self.source_x,
            self.source_y,
            self.source_x + self.source_width,
            self.source_y + self.source_height,
        )


@dataclass
class ShareCardStyle:
    """
    Geometry and palette for the share card.

    The card is fixed-width and grows downward with the caption: every element
    above the caption sits at a fixed offset from the top, and the canvas
    height is base_height plus one line_height per caption line.
    Vertical offsets are text baselines unless noted otherwise.
    """
    canvas_width: int = 1080

    # Background gradient (top, middle, bottom)
    gradient_top: str = "#0f172a"
    gradient_middle: str = "#581c87"
    gradient_bottom: str = "#0f172a"

    # Header (brand text is also the bottom watermark)
    brand_text: str = "trustscore.app"
    title_text: str = "Face Trust Analysis"
    brand_y: int = 50
    brand_font_size: int = 32
    brand_color: str = "#60a5fa"
    title_y: int = 100
    title_font_size: int = 42
    title_color: str = "#ffffff"

    # Portrait (top edge of the circle's bounding box)
    portrait_y: int = 130
    portrait_size: int = 380
    portrait_border_color: str = "#64748b"
    portrait_border_width: int = 6
    portrait_mask_supersample: int = 4

    # Score block
    emoji_y: int = 580
    emoji_font_size: int = 80
    score_y: int = 680
    score_font_size: int = 96
    out_of_y: int = 720
    out_of_font_size: int = 28
    out_of_color: str = "#9ca3af"
    out_of_text: str = "out of 100"
    category_y: int = 770
    category_font_size: int = 36

    # Metric bars
    metrics_y: int = 840
    metric_spacing: int = 400
    metric_track_width: int = 320
    metric_bar_height: int = 12
    metric_name_font_size: int = 24
    metric_value_font_size: int = 42
    metric_value_offset: int = 50
    metric_bar_offset: int = 70
    metric_name_color: str = "#d1d5db"
    metric_track_color: str = "#374151"

    # Caption
    caption_first_line_y: int = 980
    caption_line_height: int = 30
    caption_font_size: int = 22
    caption_color: str = "#d1d5db"
    caption_max_width: int = 900
    min_caption_lines: int = 1
    max_caption_lines: int = 24

    # Footer: base_height leaves the same gap below the last caption line
    # whatever the line count; the watermark sits watermark_offset above the bottom.
    base_height: int = 1050
    watermark_offset: int = 40
    watermark_font_size: int = 20
    watermark_color: str = "#64748b"

    @property
    def center_x(self) -> float:
        return self.canvas_width / 2


@dataclass
class ShareCardResult:
    """PNG bytes plus the plan that produced them."""
    png: bytes
    plan: LayoutPlan
    caption_lines: List[str] = field(default_factory=list)
