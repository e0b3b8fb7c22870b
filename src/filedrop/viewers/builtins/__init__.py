"""Viewers shipped with filedrop."""

from .image import ImageViewer
from .pdf import PdfViewer
from .text import TextViewer

BUILTIN_VIEWERS = (PdfViewer, ImageViewer, TextViewer)

__all__ = ["BUILTIN_VIEWERS", "ImageViewer", "PdfViewer", "TextViewer"]
