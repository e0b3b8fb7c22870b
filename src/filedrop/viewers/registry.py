"""Choosing the viewer that receives a hand-off.

The shipped viewers cover PDF, images and text. Config turns viewers off
(``viewers: {image: false}``) or swaps their launch command
(``viewer_commands: {pdf: [evince]}``); the media type of each hand-off
then picks one of the remaining viewers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import ViewerPlugin
from .builtins import BUILTIN_VIEWERS

if TYPE_CHECKING:
    from ..config import FiledropConfig

EXACT_MATCH = 2
WILDCARD_MATCH = 1


def discover_viewers(config: FiledropConfig | None = None) -> list[ViewerPlugin]:
    """Instantiate the viewers ``config`` leaves enabled."""
    if config is None:
        return [cls() for cls in BUILTIN_VIEWERS]

    enabled = config.viewers or {}
    return [
        cls(command=config.viewer_commands.get(cls.name))
        for cls in BUILTIN_VIEWERS
        if enabled.get(cls.name, True)
    ]


def match_rank(viewer: ViewerPlugin, media_type: str) -> int:
    """How specifically ``viewer`` accepts ``media_type`` (0 = not at all)."""
    if media_type in viewer.mime_types:
        return EXACT_MATCH
    if media_type.split("/")[0] + "/*" in viewer.mime_types:
        return WILDCARD_MATCH
    return 0


def resolve_viewer(media_type: str, viewers: list[ViewerPlugin]) -> ViewerPlugin | None:
    """Pick the viewer for ``media_type``.

    An exact match beats a wildcard match regardless of priority; among
    equally specific matches the highest priority wins.
    """
    candidates = [v for v in viewers if match_rank(v, media_type)]
    if not candidates:
        return None
    return max(candidates, key=lambda v: (match_rank(v, media_type), v.priority))
