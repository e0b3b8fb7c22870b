"""Resolving references and handing them to external viewers."""

import logging
from pathlib import Path
from urllib.parse import unquote, urlsplit

from .errors import LaunchError, ResolutionError, ValidationError
from .launcher import Intent
from .payload import OpenResult, ViewRequest, normalize_media_type
from .platform import Platform

logger = logging.getLogger(__name__)

SHAREABLE_SCHEMES = frozenset({"content", "http", "https"})


def is_file_reference(reference: str) -> bool:
    """Whether ``reference`` names a local file by URI or absolute path."""
    try:
        scheme = urlsplit(reference).scheme.lower()
    except ValueError:
        return False
    return scheme == "file" or (scheme == "" and Path(reference).is_absolute())


def _file_path(reference: str) -> Path:
    parts = urlsplit(reference)
    if parts.scheme.lower() == "file":
        if parts.netloc not in ("", "localhost"):
            raise ResolutionError(f"Remote file references are not supported: {reference}")
        return Path(unquote(parts.path))
    return Path(reference)


class Opener:
    """Translate references into shareable ones and present them."""

    def __init__(self, platform: Platform) -> None:
        self.platform = platform

    def resolve(self, reference: str) -> str:
        """Return a reference an external consumer can read.

        Files in the public directory are already readable by others and
        pass through as file URIs. Other file references are private and
        are exchanged for a content URI minted by the share provider.
        Shareable references pass through.

        Raises:
            ResolutionError: If the reference cannot be translated.
        """
        if is_file_reference(reference):
            path = _file_path(reference).resolve()
            if path.is_relative_to(self._public_dir()):
                if not path.is_file():
                    raise ResolutionError(f"File not found: {path}")
                return path.as_uri()

            provider = self.platform.share_provider
            if provider is None:
                raise ResolutionError("No share provider available for file references")
            uri = provider.uri_for_file(path)
            logger.debug("Resolved %s to %s", reference, uri)
            return uri

        try:
            scheme = urlsplit(reference).scheme.lower()
        except ValueError as e:
            raise ResolutionError(f"Malformed reference: {reference}") from e
        if scheme in SHAREABLE_SCHEMES:
            return reference

        raise ResolutionError(f"Unsupported reference: {reference}")

    def _public_dir(self) -> Path:
        return Path(self.platform.public_dir).expanduser().resolve()

    def open(self, reference: str | None, media_type: str | None = None) -> OpenResult:
        """Present ``reference`` to an external viewer.

        Raises:
            ValidationError: If reference is missing.
            ResolutionError: If the reference cannot be translated.
            LaunchError: If no viewer accepts the hand-off.
        """
        if reference is None or not str(reference).strip():
            raise ValidationError("uri is required")
        request = ViewRequest(str(reference).strip(), normalize_media_type(media_type))

        uri = self.resolve(request.source_reference)

        launcher = self.platform.launcher
        if launcher is None:
            raise LaunchError("No launcher available")
        consumer = launcher.choose(request.media_type)

        grant = None
        if self.platform.share_provider is not None:
            grant = self.platform.share_provider.grant(uri, consumer)

        launcher.launch(consumer, Intent(uri=uri, media_type=request.media_type, grant=grant))
        return OpenResult(opened=True, uri=uri, viewer=consumer)
