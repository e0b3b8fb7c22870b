"""PDF viewer: redeems the grant, then shows a local copy."""

from ..base import ViewerPlugin, granted_view_command


class PdfViewer(ViewerPlugin):
    """Viewer for PDF documents."""

    name = "pdf"
    mime_types = ["application/pdf"]
    priority = 0

    def default_command(self) -> list[str]:
        return granted_view_command()
