"""
Failure kinds raised by the share-card compositor.

Each failure is fatal for the call that raised it and is never retried
internally. Callers can catch ShareCardError and branch on ``kind``.
"""
from enum import Enum


class ShareCardErrorKind(str, Enum):
    SURFACE_UNAVAILABLE = "surface_unavailable"
    IMAGE_LOAD_FAILURE = "image_load_failure"
    SERIALIZATION_FAILURE = "serialization_failure"


class ShareCardError(Exception):
    kind: ShareCardErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SurfaceUnavailable(ShareCardError):
    """The drawing surface could not be allocated."""
    kind = ShareCardErrorKind.SURFACE_UNAVAILABLE


class ImageLoadFailure(ShareCardError):
    """The portrait could not be fetched or decoded."""
    kind = ShareCardErrorKind.IMAGE_LOAD_FAILURE


class SerializationFailure(ShareCardError):
    """The finished surface could not be encoded as PNG."""
    kind = ShareCardErrorKind.SERIALIZATION_FAILURE
