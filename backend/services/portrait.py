"""
Portrait loading and circular placement for the share card.

Loading is the compositor's only suspension point: ``load_portrait`` runs the
blocking fetch/decode in a worker thread and either returns a fully decoded
RGB image or raises ImageLoadFailure. Everything else here is synchronous.
HEIC/HEIF decoding is registered on import when pillow-heif is installed, so
library callers and scripts get it without going through the API.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import threading
from io import BytesIO
from pathlib import Path
from typing import Optional
from urllib.parse import unquote_to_bytes

import requests
from PIL import Image, ImageDraw, ImageOps

from domain.errors import ImageLoadFailure
from domain.models import CropRect, PortraitSource, ShareCardStyle

logger = logging.getLogger(__name__)
DEFAULT_USER_AGENT = "trust-share-card/0.1 (portrait-fetch)"
# Loads run in worker threads; each thread keeps its own Session.
_thread_local = threading.local()


def register_heif_opener() -> bool:
    """
    Register HEIF/HEIC opener with Pillow if pillow-heif is available.

    Safe to call multiple times or if pillow-heif is not installed.
    """
    try:
        from pillow_heif import register_heif_opener as _register
        _register()
        return True
    except ImportError:
        return False


HEIF_AVAILABLE = register_heif_opener()


def _thread_session() -> requests.Session:
    session = getattr(_thread_local, "session", None)
    if session is None:
        session = requests.Session()
        _thread_local.session = session
    return session


def _describe_source(source: PortraitSource) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    if hasattr(source, "read"):
        return f"<stream {getattr(source, 'name', type(source).__name__)}>"
    text = str(source)
    if text.startswith("data:"):
        return text[: text.find(",") + 1] + "..."
    return text


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ValueError("malformed data URL")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=True)
    return unquote_to_bytes(payload)


def _fetch_remote(url: str, timeout: Optional[float], user_agent: str) -> bytes:
    resp = _thread_session().get(url, headers={"User-Agent": user_agent}, timeout=timeout)
    resp.raise_for_status()
    return resp.content


def _read_source_bytes(source: PortraitSource, timeout: Optional[float], user_agent: str) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if hasattr(source, "read"):
        return source.read()
    if isinstance(source, Path):
        return source.read_bytes()
    text = str(source)
    if text.startswith("data:"):
        return _decode_data_url(text)
    if text.startswith(("http://", "https://")):
        return _fetch_remote(text, timeout, user_agent)
    return Path(text).expanduser().read_bytes()


def _decode_image(data: bytes) -> Image.Image:
    with Image.open(BytesIO(data)) as img:
        img.load()
        img = ImageOps.exif_transpose(img)
        return img.convert("RGB")


def read_portrait(
    source: PortraitSource,
    timeout: Optional[float] = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> Image.Image:
    """
    Fetch and fully decode a portrait.

    Raises:
        ImageLoadFailure: The source could not be read, fetched or decoded.
    """
    label = _describe_source(source)
    try:
        data = _read_source_bytes(source, timeout, user_agent)
        img = _decode_image(data)
    except requests.RequestException as exc:
        raise ImageLoadFailure(f"could not fetch portrait {label}: {exc}") from exc
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageLoadFailure(f"could not decode portrait {label}: {exc}") from exc
    logger.info("[portrait] loaded %sx%s from %s", img.width, img.height, label)
    return img


async def load_portrait(
    source: PortraitSource,
    timeout: Optional[float] = None,
    user_agent: str = DEFAULT_USER_AGENT,
) -> Image.Image:
    """Awaitable wrapper around ``read_portrait``; the blocking work runs off the event loop."""
    return await asyncio.to_thread(read_portrait, source, timeout, user_agent)


def compute_center_crop(width: int, height: int) -> CropRect:
    """
    Centered square crop of a ``width`` x ``height`` image.

    The square's side is the smaller dimension; the larger one is trimmed
    equally on both sides (integer division, so odd excess favours the
    left/top edge by half a pixel).
    """
    if width > height:
        return CropRect(source_x=(width - height) // 2, source_y=0, source_width=height, source_height=height)
    if width < height:
        return CropRect(source_x=0, source_y=(height - width) // 2, source_width=width, source_height=width)
    return CropRect(source_x=0, source_y=0, source_width=width, source_height=height)


def circle_mask(diameter: int, supersample: int = 4) -> Image.Image:
    """Anti-aliased 'L' mask of a filled circle, drawn large then downsampled."""
    scale = max(1, supersample)
    big = Image.new("L", (diameter * scale, diameter * scale), 0)
    ImageDraw.Draw(big).ellipse((0, 0, diameter * scale - 1, diameter * scale - 1), fill=255)
    if scale == 1:
        return big
    return big.resize((diameter, diameter), Image.Resampling.LANCZOS)


def draw_portrait(surface: Image.Image, portrait: Image.Image, style: ShareCardStyle) -> CropRect:
    """
    Paste the center-cropped portrait into a circle and stroke its border.

    The masked paste completes before the border is drawn so the stroke sits
    on top of the photo instead of being clipped by the circle.
    """
    crop = compute_center_crop(portrait.width, portrait.height)
    side = style.portrait_size
    x = int(round((surface.width - side) / 2))
    y = style.portrait_y

    face = portrait.crop(crop.box).resize((side, side), Image.Resampling.LANCZOS)
    surface.paste(face, (x, y), circle_mask(side, style.portrait_mask_supersample))

    # Center the stroke on the circle edge, half inside and half outside.
    half = style.portrait_border_width / 2
    ImageDraw.Draw(surface).ellipse(
        (x - half, y - half, x + side + half, y + side + half),
        outline=style.portrait_border_color,
        width=style.portrait_border_width,
    )
    logger.debug("[portrait] crop=%s dest=(%s, %s, %s)", crop, x, y, side)
    return crop
