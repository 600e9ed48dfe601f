"""
Share-card API routes.

Thin adapter over services.share_card: collect the analysis values and a
portrait, compose the card, stream back the PNG.
"""
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from domain.errors import ImageLoadFailure, ShareCardError
from domain.models import PortraitSource, ShareRequest
from services import share_card

router = APIRouter()

PNG_FILENAME = "trust-score.png"


class ShareCardUrlRequest(BaseModel):
    image_url: str
    score: float
    honesty: float
    reliability: float
    caption: str = ""
    emoji: str = ""


def _check_remote_url(url: str) -> str:
    # Only remote images: never let a request name a file on this host.
    if not url.startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="image_url must be an http(s) URL")
    return url


async def _render(request: ShareRequest) -> Response:
    try:
        png = await share_card.generate_share_image(request)
    except ImageLoadFailure as exc:
        raise HTTPException(status_code=422, detail={"kind": exc.kind.value, "message": exc.message})
    except ShareCardError as exc:
        raise HTTPException(status_code=500, detail={"kind": exc.kind.value, "message": exc.message})
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{PNG_FILENAME}"'},
    )


@router.post("", response_class=Response, responses={200: {"content": {"image/png": {}}}})
async def create_share_card(
    score: float = Form(...),
    honesty: float = Form(...),
    reliability: float = Form(...),
    caption: str = Form(""),
    emoji: str = Form(""),
    image_url: Optional[str] = Form(None),
    portrait: Optional[UploadFile] = File(None),
):
    """Compose a share card from an uploaded portrait (or a remote image URL)."""
    source: PortraitSource
    if portrait is not None:
        source = await portrait.read()
    elif image_url:
        source = _check_remote_url(image_url)
    else:
        raise HTTPException(status_code=400, detail="Provide a portrait file or image_url")

    return await _render(
        ShareRequest(
            source=source,
            score=score,
            honesty=honesty,
            reliability=reliability,
            caption=caption,
            emoji=emoji,
        )
    )


@router.post("/from-url", response_class=Response, responses={200: {"content": {"image/png": {}}}})
async def create_share_card_from_url(data: ShareCardUrlRequest):
    """Compose a share card from a JSON body pointing at a remote portrait."""
    return await _render(
        ShareRequest(
            source=_check_remote_url(data.image_url),
            score=data.score,
            honesty=data.honesty,
            reliability=data.reliability,
            caption=data.caption,
            emoji=data.emoji,
        )
    )
