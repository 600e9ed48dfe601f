import asyncio
import dataclasses
import json
import math
from io import BytesIO

import pytest
from PIL import Image

from domain.errors import ImageLoadFailure, SerializationFailure, SurfaceUnavailable
from domain.models import LayoutPlan, ShareCardStyle, ShareRequest
from services import share_card
from services.score_bands import score_to_color
from services.share_fonts import EMOJI_NATIVE_SIZE, load_font
from services.share_card import (
    CardFonts,
    bar_fill_width,
    compose_share_card,
    draw_emoji,
    export_png,
    format_value,
    generate_share_image,
)
from settings import Settings


def _png_bytes(size=(1600, 900), color=(180, 140, 120)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def _request(**overrides) -> ShareRequest:
    values = dict(
        source=_png_bytes(),
        score=76,
        honesty=80,
        reliability=72,
        caption="Trustworthy",
        emoji="",
    )
    values.update(overrides)
    return ShareRequest(**values)


@pytest.fixture
def config():
    cfg = Settings()
    cfg.SHARE_CARD_DEBUG_ARTIFACTS = False
    cfg.SHARE_SITE_URL = "trustscore.app"
    cfg.SHARE_CARD_MAX_CAPTION_LINES = 24
    return cfg


def _compose(request, config, **kwargs):
    return asyncio.run(compose_share_card(request, config=config, **kwargs))


def _decode(png: bytes) -> Image.Image:
    img = Image.open(BytesIO(png))
    img.load()
    return img


def test_format_value_drops_trailing_zero():
    assert format_value(76) == "76"
    assert format_value(76.0) == "76"
    assert format_value(76.5) == "76.5"
    assert format_value(math.nan) == "nan"


def test_bar_fill_width_is_proportional_and_never_negative():
    assert bar_fill_width(50, 320) == 160
    assert bar_fill_width(100, 320) == 320
    assert bar_fill_width(150, 320) == 480
    assert bar_fill_width(0, 320) == 0
    assert bar_fill_width(-10, 320) == 0
    assert bar_fill_width(math.nan, 320) == 0


def test_single_word_caption_card(config):
    result = _compose(_request(), config)
    style = ShareCardStyle()

    assert result.plan.caption_line_count == 1
    assert result.caption_lines == ["Trustworthy"]
    img = _decode(result.png)
    assert img.format == "PNG"
    assert img.size == (style.canvas_width, style.base_height + style.caption_line_height)
    assert img.size == result.plan.size


def test_forty_word_caption_draws_exactly_five_lines(config, monkeypatch):
    monkeypatch.setattr(share_card, "font_measure", lambda font: (lambda text: 10.0 * len(text)))
    style = ShareCardStyle(caption_max_width=400)

    result = _compose(_request(caption=" ".join(["word"] * 40)), config, style=style)

    assert result.plan.caption_line_count == 5
    assert len(result.caption_lines) == 5
    assert _decode(result.png).height == style.base_height + 5 * style.caption_line_height


def test_drawn_lines_never_exceed_planned_lines(config):
    caption = (
        "Open expression, steady gaze and a relaxed jaw read as approachable. "
        "Slight asymmetry in the brows softens the overall impression. " * 4
    )
    result = _compose(_request(caption=caption), config)

    assert len(result.caption_lines) == result.plan.caption_line_count
    assert result.plan.caption_line_count > 1
    assert _decode(result.png).size == result.plan.size


def test_long_caption_is_capped(config):
    config.SHARE_CARD_MAX_CAPTION_LINES = 2
    result = _compose(_request(caption=" ".join(["trust"] * 300)), config)

    assert result.plan.caption_line_count == 2
    assert len(result.caption_lines) == 2


def test_empty_caption_still_renders(config):
    result = _compose(_request(caption=""), config)
    assert result.plan.caption_line_count == 0
    assert result.caption_lines == []
    assert _decode(result.png).height == ShareCardStyle().base_height + ShareCardStyle().caption_line_height


@pytest.mark.parametrize("score", [10, 100])
def test_extreme_scores_render(config, score):
    result = _compose(_request(score=score, honesty=score, reliability=score), config)
    assert _decode(result.png).size == result.plan.size


def test_out_of_range_values_render_without_clamping(config):
    result = _compose(_request(score=150, honesty=-20, reliability=math.nan), config)
    assert _decode(result.png).size == result.plan.size


def test_emoji_renders(config):
    result = _compose(_request(emoji="🙂"), config)
    assert _decode(result.png).size == result.plan.size


def test_background_gradient_stops(config):
    img = _decode(_compose(_request(), config).png).convert("RGB")
    top = img.getpixel((0, 0))
    middle = img.getpixel((0, img.height // 2))
    for got, expected in zip(top, (15, 23, 42)):
        assert abs(got - expected) <= 2
    for got, expected in zip(middle, (88, 28, 135)):
        assert abs(got - expected) <= 3


def test_metric_bar_uses_metric_color(config):
    style = ShareCardStyle()
    img = _decode(_compose(_request(honesty=90), config).png).convert("RGB")

    # Left end of the honesty bar, a few pixels into the fill.
    bar_x = int(style.center_x - style.metric_spacing / 2 - style.metric_track_width / 2) + 2
    bar_y = style.metrics_y + style.metric_bar_offset + style.metric_bar_height // 2
    expected = Image.new("RGB", (1, 1), score_to_color(90)).getpixel((0, 0))
    assert img.getpixel((bar_x, bar_y)) == expected


def test_same_request_gives_same_dimensions(config):
    request = _request(caption="A calm, steady expression. " * 6)
    first = _compose(request, config)
    second = _compose(request, config)
    assert first.plan == second.plan
    assert first.caption_lines == second.caption_lines
    assert _decode(first.png).size == _decode(second.png).size


def test_generate_share_image_returns_png_bytes(config):
    png = asyncio.run(generate_share_image(_request(), config=config))
    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_image_load_failure_skips_export(config, monkeypatch):
    calls = []
    monkeypatch.setattr(share_card, "export_png", lambda surface: calls.append(surface) or b"")

    with pytest.raises(ImageLoadFailure):
        _compose(_request(source=b"not an image"), config)
    assert calls == []


def test_surface_failure_skips_portrait_load(config, monkeypatch):
    loads = []

    async def _load(*args, **kwargs):
        loads.append(args)

    monkeypatch.setattr(share_card, "plan_layout", lambda *args, **kwargs: LayoutPlan(1080, -1, 0))
    monkeypatch.setattr(share_card, "load_portrait", _load)

    with pytest.raises(SurfaceUnavailable):
        _compose(_request(), config)
    assert loads == []


def test_export_png_maps_encoder_errors():
    class _BrokenSurface:
        def save(self, fp, format=None):
            raise OSError("encoder unavailable")

    with pytest.raises(SerializationFailure) as excinfo:
        export_png(_BrokenSurface())  # type: ignore[arg-type]
    assert "encoder unavailable" in str(excinfo.value)


def test_debug_artifacts_written(config, tmp_path):
    result = _compose(_request(), config, debug_dir=tmp_path)

    meta = json.loads((tmp_path / "share_card_plan.json").read_text())
    assert meta["plan"]["canvas_height"] == result.plan.canvas_height
    assert meta["crop"] == {"source_x": 350, "source_y": 0, "source_width": 900, "source_height": 900}
    assert meta["caption_lines"] == ["Trustworthy"]
    assert (tmp_path / "share_card.png").read_bytes() == result.png


def test_site_url_comes_from_settings(config, monkeypatch):
    config.SHARE_SITE_URL = "example.org"
    seen = []
    original = share_card.draw_watermark

    def _spy(draw, plan, style, fonts):
        seen.append(style.brand_text)
        original(draw, plan, style, fonts)

    monkeypatch.setattr(share_card, "draw_watermark", _spy)
    _compose(_request(), config)
    assert seen == ["example.org"]


def test_emoji_layer_is_scaled_and_centered_on_baseline(config):
    style = ShareCardStyle()
    # Any TrueType face at the native strike size drives the layered path.
    fonts = dataclasses.replace(CardFonts.load(style, config), emoji=load_font(EMOJI_NATIVE_SIZE))
    surface = Image.new("RGB", (style.canvas_width, 700), (0, 0, 0))

    draw_emoji(surface, "W", style, fonts)

    bbox = surface.getbbox()
    assert bbox is not None
    left, top, right, bottom = bbox
    assert abs((left + right) / 2 - style.center_x) <= 2
    assert top < style.emoji_y
    assert bottom <= style.emoji_y + 1
    # Scaled from the native size down to the card's emoji size.
    native_width = fonts.emoji.getlength("W")
    assert right - left < native_width


def test_compose_uses_emoji_font_when_available(config, monkeypatch):
    monkeypatch.setattr(share_card, "load_emoji_font", lambda path=None: load_font(EMOJI_NATIVE_SIZE))
    calls = []
    original = share_card.draw_emoji

    def _spy(surface, emoji, style, fonts):
        calls.append(fonts.emoji is not None)
        original(surface, emoji, style, fonts)

    monkeypatch.setattr(share_card, "draw_emoji", _spy)
    result = _compose(_request(emoji="🙂"), config)

    assert calls == [True]
    assert _decode(result.png).size == result.plan.size
