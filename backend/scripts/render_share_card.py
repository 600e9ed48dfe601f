"""Render a single share card to a file.

Usage:
    PYTHONPATH=backend python -m scripts.render_share_card --portrait <path-or-url> --score 76 \
        [--honesty 80] [--reliability 72] [--caption "..."] [--emoji "🙂"] [--out share_card.png]

Useful for eyeballing layout changes without the web app. When
SHARE_CARD_DEBUG_ARTIFACTS=1 (or --debug-dir is given), the layout plan and a
copy of the card are written next to each other for inspection.
"""

from __future__ import annotations

import argparse
import asyncio
import hashlib
import logging
from pathlib import Path

from domain.errors import ShareCardError
from domain.models import ShareRequest
from services.share_card import compose_share_card

logger = logging.getLogger("render_share_card")


def main() -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Render a trust-score share card.")
    parser.add_argument("--portrait", required=True, help="Portrait image path or http(s)/data URL.")
    parser.add_argument("--score", type=float, required=True)
    parser.add_argument("--honesty", type=float, default=None, help="Defaults to the score.")
    parser.add_argument("--reliability", type=float, default=None, help="Defaults to the score.")
    parser.add_argument("--caption", default="")
    parser.add_argument("--emoji", default="")
    parser.add_argument("--out", default="share_card.png")
    parser.add_argument("--debug-dir", default=None, help="Write plan JSON and a card copy here.")
    args = parser.parse_args()

    request = ShareRequest(
        source=args.portrait,
        score=args.score,
        honesty=args.score if args.honesty is None else args.honesty,
        reliability=args.score if args.reliability is None else args.reliability,
        caption=args.caption,
        emoji=args.emoji,
    )
    debug_dir = Path(args.debug_dir).resolve() if args.debug_dir else None

    try:
        result = asyncio.run(compose_share_card(request, debug_dir=debug_dir))
    except ShareCardError as exc:
        logger.error("[share-card] failed kind=%s: %s", exc.kind.value, exc.message)
        return 1

    out_path = Path(args.out).resolve()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.png)
    sha = hashlib.sha256(result.png).hexdigest()[:12]
    logger.info(
        "[share-card] output=%s size=%sx%s caption_lines=%s sha=%s",
        out_path,
        result.plan.canvas_width,
        result.plan.canvas_height,
        result.plan.caption_line_count,
        sha,
    )
    if debug_dir:
        logger.info("  debug_dir: %s", debug_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
