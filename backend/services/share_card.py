"""
Share-card compositor.

Builds a single PNG summarizing one trust analysis: circular portrait,
headline score with its category, honesty/reliability bars and a wrapped
caption, on a card that grows in height with the caption.

Pipeline (one call, no shared state between calls):
1) Plan: wrap the caption with the caption font and fix the canvas size.
2) Provision: allocate the surface at the planned size.
3) Await the portrait load (the only suspension point).
4) Draw synchronously: background gradient, portrait, header, score block,
   metric bars, caption, watermark.
5) Export the surface as PNG bytes.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Optional

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFont

from domain.errors import SerializationFailure, SurfaceUnavailable
from domain.models import CropRect, LayoutPlan, ShareCardResult, ShareCardStyle, ShareRequest
from services.portrait import draw_portrait, load_portrait
from services.score_bands import score_to_category, score_to_color
from services.share_fonts import EMOJI_NATIVE_SIZE, load_emoji_font, load_font
from services.share_layout import plan_layout, wrap_caption
from services.text_wrap import font_measure
from settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardFonts:
    brand: ImageFont.FreeTypeFont
    title: ImageFont.FreeTypeFont
    emoji_text: ImageFont.FreeTypeFont
    score: ImageFont.FreeTypeFont
    out_of: ImageFont.FreeTypeFont
    category: ImageFont.FreeTypeFont
    metric_name: ImageFont.FreeTypeFont
    metric_value: ImageFont.FreeTypeFont
    caption: ImageFont.FreeTypeFont
    watermark: ImageFont.FreeTypeFont
    emoji: Optional[ImageFont.FreeTypeFont] = None

    @classmethod
    def load(cls, style: ShareCardStyle, config: Settings) -> "CardFonts":
        regular = config.SHARE_CARD_FONT_PATH
        bold = config.SHARE_CARD_BOLD_FONT_PATH
        return cls(
            brand=load_font(style.brand_font_size, "bold", bold),
            title=load_font(style.title_font_size, "bold", bold),
            emoji_text=load_font(style.emoji_font_size, "regular", regular),
            score=load_font(style.score_font_size, "bold", bold),
            out_of=load_font(style.out_of_font_size, "regular", regular),
            category=load_font(style.category_font_size, "bold", bold),
            metric_name=load_font(style.metric_name_font_size, "regular", regular),
            metric_value=load_font(style.metric_value_font_size, "bold", bold),
            caption=load_font(style.caption_font_size, "regular", regular),
            watermark=load_font(style.watermark_font_size, "regular", regular),
            emoji=load_emoji_font(config.SHARE_CARD_EMOJI_FONT_PATH),
        )


def style_from_settings(config: Settings) -> ShareCardStyle:
    return ShareCardStyle(
        brand_text=config.SHARE_SITE_URL,
        title_text=config.SHARE_CARD_TITLE,
        max_caption_lines=config.SHARE_CARD_MAX_CAPTION_LINES,
    )


def format_value(value: float) -> str:
    """Render a score the way it was given; whole floats drop their '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def bar_fill_width(value: float, track_width: float) -> float:
    """Filled width of a metric bar; NaN and non-positive values give an empty bar."""
    width = track_width * (value / 100)
    if not math.isfinite(width) or width <= 0:
        return 0.0
    return width


# ============================================
# Stages
# ============================================

def provision_surface(plan: LayoutPlan) -> Image.Image:
    """Allocate the drawing surface at the planned size."""
    try:
        return Image.new("RGB", plan.size)
    except (ValueError, MemoryError) as exc:
        raise SurfaceUnavailable(
            f"could not allocate {plan.canvas_width}x{plan.canvas_height} surface: {exc}"
        ) from exc


def paint_background(surface: Image.Image, style: ShareCardStyle) -> None:
    """Vertical three-stop gradient (top, middle at 50%, bottom) over the whole surface."""
    width, height = surface.size
    stops = np.array([0.0, 0.5, 1.0])
    colors = np.array(
        [
            ImageColor.getrgb(style.gradient_top)[:3],
            ImageColor.getrgb(style.gradient_middle)[:3],
            ImageColor.getrgb(style.gradient_bottom)[:3],
        ],
        dtype=np.float64,
    )
    # Sample at pixel centers.
    ts = (np.arange(height, dtype=np.float64) + 0.5) / height
    column = np.stack([np.interp(ts, stops, colors[:, c]) for c in range(3)], axis=1)
    rows = np.rint(column).astype(np.uint8)
    pixels = np.ascontiguousarray(np.broadcast_to(rows[:, None, :], (height, width, 3)))
    surface.paste(Image.fromarray(pixels))


def _draw_centered(
    draw: ImageDraw.ImageDraw,
    x: float,
    y: float,
    text: str,
    font: ImageFont.FreeTypeFont,
    fill: str,
) -> None:
    # "ms": horizontally centered on x, y is the text baseline.
    draw.text((x, y), text, font=font, fill=fill, anchor="ms")


def draw_header(draw: ImageDraw.ImageDraw, style: ShareCardStyle, fonts: CardFonts) -> None:
    _draw_centered(draw, style.center_x, style.brand_y, style.brand_text, fonts.brand, style.brand_color)
    _draw_centered(draw, style.center_x, style.title_y, style.title_text, fonts.title, style.title_color)


def draw_emoji(surface: Image.Image, emoji: str, style: ShareCardStyle, fonts: CardFonts) -> None:
    """
    Draw the emoji centered on the emoji baseline.

    Color emoji fonts only render at their native size, so the glyph is drawn
    on its own layer and scaled to the card's emoji size. Without such a font
    the regular text font is used.
    """
    if not emoji:
        return
    if fonts.emoji is None:
        _draw_centered(ImageDraw.Draw(surface), style.center_x, style.emoji_y, emoji, fonts.emoji_text, style.title_color)
        return

    left, top, right, bottom = fonts.emoji.getbbox(emoji, anchor="ls")
    if right <= left or bottom <= top:
        return
    glyph = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
    ImageDraw.Draw(glyph).text((-left, -top), emoji, font=fonts.emoji, anchor="ls", embedded_color=True)
    scale = style.emoji_font_size / EMOJI_NATIVE_SIZE
    size = (max(1, round(glyph.width * scale)), max(1, round(glyph.height * scale)))
    glyph = glyph.resize(size, Image.Resampling.LANCZOS)
    x = round(style.center_x - glyph.width / 2)
    y = round(style.emoji_y + top * scale)
    surface.paste(glyph, (x, y), glyph)


def draw_score_block(
    surface: Image.Image,
    draw: ImageDraw.ImageDraw,
    request: ShareRequest,
    style: ShareCardStyle,
    fonts: CardFonts,
) -> str:
    """Emoji, headline score, 'out of 100' and the category label. Returns the band color."""
    color = score_to_color(request.score)
    draw_emoji(surface, request.emoji, style, fonts)
    _draw_centered(draw, style.center_x, style.score_y, format_value(request.score), fonts.score, color)
    _draw_centered(draw, style.center_x, style.out_of_y, style.out_of_text, fonts.out_of, style.out_of_color)
    _draw_centered(draw, style.center_x, style.category_y, score_to_category(request.score), fonts.category, color)
    return color


def draw_metric(
    draw: ImageDraw.ImageDraw,
    name: str,
    value: float,
    center_x: float,
    style: ShareCardStyle,
    fonts: CardFonts,
) -> float:
    """
    Metric name, value and proportional bar centered on ``center_x``.

    The bar is colored by the metric's own value. Values above 100 overflow
    the track (up to the canvas edge). Returns the filled width.
    """
    y = style.metrics_y
    color = score_to_color(value)
    _draw_centered(draw, center_x, y, name, fonts.metric_name, style.metric_name_color)
    _draw_centered(draw, center_x, y + style.metric_value_offset, format_value(value), fonts.metric_value, color)

    track_width = style.metric_track_width
    bar_x = center_x - track_width / 2
    bar_y = y + style.metric_bar_offset
    bar_bottom = bar_y + style.metric_bar_height - 1
    draw.rectangle((bar_x, bar_y, bar_x + track_width - 1, bar_bottom), fill=style.metric_track_color)

    fill_width = bar_fill_width(value, track_width)
    if fill_width >= 1:
        right = min(bar_x + fill_width - 1, style.canvas_width - 1)
        draw.rectangle((bar_x, bar_y, right, bar_bottom), fill=color)
    return fill_width


def draw_metrics(draw: ImageDraw.ImageDraw, request: ShareRequest, style: ShareCardStyle, fonts: CardFonts) -> None:
    half = style.metric_spacing / 2
    draw_metric(draw, "Honesty", request.honesty, style.center_x - half, style, fonts)
    draw_metric(draw, "Reliability", request.reliability, style.center_x + half, style, fonts)


def draw_caption(
    draw: ImageDraw.ImageDraw,
    caption: str,
    font: ImageFont.FreeTypeFont,
    plan: LayoutPlan,
    style: ShareCardStyle,
) -> List[str]:
    """
    Draw the wrapped caption, never more lines than the plan reserved.

    Uses the same wrap function, font and width as the planner, so the lines
    drawn here are the lines the canvas height was computed for.
    """
    lines = wrap_caption(caption, font_measure(font), style)[: plan.caption_line_count]
    for index, line in enumerate(lines):
        y = style.caption_first_line_y + index * style.caption_line_height
        _draw_centered(draw, style.center_x, y, line, font, style.caption_color)
    return lines


def draw_watermark(draw: ImageDraw.ImageDraw, plan: LayoutPlan, style: ShareCardStyle, fonts: CardFonts) -> None:
    y = plan.canvas_height - style.watermark_offset
    _draw_centered(draw, style.center_x, y, style.brand_text, fonts.watermark, style.watermark_color)


def export_png(surface: Image.Image) -> bytes:
    """Encode the finished surface as PNG."""
    buffer = BytesIO()
    try:
        surface.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise SerializationFailure(f"could not encode share card as PNG: {exc}") from exc
    return buffer.getvalue()


def _write_debug_artifacts(
    debug_dir: Path,
    plan: LayoutPlan,
    crop: CropRect,
    lines: List[str],
    png: bytes,
) -> None:
    try:
        debug_dir.mkdir(parents=True, exist_ok=True)
        meta = {"plan": asdict(plan), "crop": asdict(crop), "caption_lines": lines}
        (debug_dir / "share_card_plan.json").write_text(json.dumps(meta, indent=2))
        (debug_dir / "share_card.png").write_bytes(png)
    except OSError:
        logger.warning("[debug-artifacts] failed to write share card artifacts to %s", debug_dir, exc_info=True)


# ============================================
# Entry points
# ============================================

async def compose_share_card(
    request: ShareRequest,
    style: Optional[ShareCardStyle] = None,
    config: Optional[Settings] = None,
    debug_dir: Optional[Path] = None,
) -> ShareCardResult:
    """
    Compose a share card and return the PNG together with its layout plan.

    Raises:
        SurfaceUnavailable: The canvas could not be allocated.
        ImageLoadFailure: The portrait could not be fetched or decoded.
        SerializationFailure: The finished card could not be encoded.
    """
    config = config or default_settings
    style = style or style_from_settings(config)
    fonts = CardFonts.load(style, config)

    plan = plan_layout(request.caption, font_measure(fonts.caption), style)
    surface = provision_surface(plan)
    logger.info(
        "[share-card] site=%s canvas=%sx%s caption_lines=%s",
        style.brand_text,
        plan.canvas_width,
        plan.canvas_height,
        plan.caption_line_count,
    )

    portrait = await load_portrait(
        request.source,
        timeout=config.PORTRAIT_FETCH_TIMEOUT,
        user_agent=config.PORTRAIT_USER_AGENT,
    )

    # No suspension past this point: the surface is drawn and encoded in one go.
    paint_background(surface, style)
    crop = draw_portrait(surface, portrait, style)
    draw = ImageDraw.Draw(surface)
    draw_header(draw, style, fonts)
    draw_score_block(surface, draw, request, style, fonts)
    draw_metrics(draw, request, style, fonts)
    lines = draw_caption(draw, request.caption, fonts.caption, plan, style)
    draw_watermark(draw, plan, style, fonts)

    png = export_png(surface)
    logger.info("[share-card] exported %s bytes (%s caption lines drawn)", len(png), len(lines))

    if debug_dir is None and config.SHARE_CARD_DEBUG_ARTIFACTS:
        debug_dir = Path("data") / "debug" / "share_card"
    if debug_dir is not None:
        _write_debug_artifacts(debug_dir, plan, crop, lines, png)

    return ShareCardResult(png=png, plan=plan, caption_lines=lines)


async def generate_share_image(
    request: ShareRequest,
    style: Optional[ShareCardStyle] = None,
    config: Optional[Settings] = None,
) -> bytes:
    """Compose a share card and return only the PNG bytes."""
    result = await compose_share_card(request, style=style, config=config)
    return result.png
