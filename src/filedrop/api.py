"""Request functions mirroring the bridge call shape.

Each takes the call's argument mapping and returns the result mapping.
Failures raise FiledropError subclasses; ``to_rejection`` renders them.
"""

from typing import Any, Mapping

from .errors import to_rejection
from .opener import Opener
from .payload import DEFAULT_MEDIA_TYPE
from .platform import Platform
from .publisher import Publisher

__all__ = ["save_to_downloads", "open_file", "to_rejection"]


def save_to_downloads(call: Mapping[str, Any], platform: Platform) -> dict:
    """Publish ``{"fileName", "base64", "mimeType"?}``.

    Returns:
        ``{"uri": str, "isPublic": True}``
    """
    reference = Publisher(platform).publish_base64(
        call.get("fileName"),
        call.get("base64"),
        call.get("mimeType") or DEFAULT_MEDIA_TYPE,
    )
    return reference.to_dict()


def open_file(call: Mapping[str, Any], platform: Platform) -> dict:
    """Open ``{"uri", "mimeType"?}`` in an external viewer.

    Returns:
        ``{"opened": True}``
    """
    result = Opener(platform).open(
        call.get("uri"),
        call.get("mimeType") or DEFAULT_MEDIA_TYPE,
    )
    return result.to_dict()
