"""Image viewer: redeems the grant, then shows a local copy."""

from ..base import ViewerPlugin, granted_view_command


class ImageViewer(ViewerPlugin):
    """Viewer for any image/* payload."""

    name = "image"
    mime_types = ["image/*"]
    priority = 0

    def default_command(self) -> list[str]:
        return granted_view_command()
