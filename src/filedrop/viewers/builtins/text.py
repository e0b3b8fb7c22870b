"""Text viewer for plain text and structured text formats."""

from ..base import ViewerPlugin, granted_view_command


class TextViewer(ViewerPlugin):
    """Viewer for text/* plus JSON and XML data."""

    name = "text"
    mime_types = ["text/*", "application/json", "application/xml"]
    priority = 0

    def default_command(self) -> list[str]:
        return granted_view_command()
