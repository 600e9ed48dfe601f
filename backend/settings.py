import os
from typing import Optional

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_optional_float(val: str | None) -> Optional[float]:
    if val is None or not val.strip():
        return None
    return float(val)


class Settings:
    def __init__(self) -> None:
        self.SHARE_SITE_URL: str = os.getenv("SHARE_SITE_URL", "trustscore.app")
        self.SHARE_CARD_TITLE: str = os.getenv("SHARE_CARD_TITLE", "Face Trust Analysis")
        self.SHARE_CARD_FONT_PATH: Optional[str] = os.getenv("SHARE_CARD_FONT_PATH")
        self.SHARE_CARD_BOLD_FONT_PATH: Optional[str] = os.getenv("SHARE_CARD_BOLD_FONT_PATH")
        self.SHARE_CARD_EMOJI_FONT_PATH: Optional[str] = os.getenv("SHARE_CARD_EMOJI_FONT_PATH")
        self.SHARE_CARD_MAX_CAPTION_LINES: int = int(os.getenv("SHARE_CARD_MAX_CAPTION_LINES", "24"))
        self.SHARE_CARD_DEBUG_ARTIFACTS: bool = _as_bool(os.getenv("SHARE_CARD_DEBUG_ARTIFACTS"), False)
        # No timeout unless configured; a hung fetch stalls only its own call.
        self.PORTRAIT_FETCH_TIMEOUT: Optional[float] = _as_optional_float(os.getenv("PORTRAIT_FETCH_TIMEOUT"))
        self.PORTRAIT_USER_AGENT: str = os.getenv(
            "PORTRAIT_USER_AGENT", "trust-share-card/0.1 (portrait-fetch)"
        )


settings = Settings()
