"""Viewer plugins for filedrop.

Viewers are the external applications a resolved reference is handed to.
The built-in viewers redeem the hand-off's read grant through
``filedrop read --view`` and show the bytes with the desktop's default
application.
"""

from .base import (
    ViewerPlugin,
    granted_view_command,
    open_with_system,
    system_open_command,
)
from .registry import discover_viewers, resolve_viewer

__all__ = [
    "ViewerPlugin",
    "granted_view_command",
    "open_with_system",
    "system_open_command",
    "discover_viewers",
    "resolve_viewer",
]
