"""Redeeming read grants on the viewer side of a hand-off."""

import logging
import tempfile
from pathlib import Path
from urllib.parse import unquote, urlsplit

from .errors import GrantError, ResolutionError, StorageBrokerError
from .platform import Platform
from .sharing import ReadGrant
from .viewers import open_with_system

logger = logging.getLogger(__name__)

WEB_SCHEMES = frozenset({"http", "https"})


class Reader:
    """Read the bytes behind a granted URI."""

    def __init__(self, platform: Platform) -> None:
        self.platform = platform

    def read(self, uri: str, grant: ReadGrant) -> bytes:
        """Return the bytes ``grant`` lets its consumer read.

        Raises:
            GrantError: If the grant does not cover ``uri``.
            ResolutionError: If ``uri`` names nothing readable.
        """
        provider = self.platform.share_provider
        if provider is None:
            raise GrantError("No share provider available to verify grants")
        provider.check(grant, uri, grant.consumer)

        parts = urlsplit(uri)
        scheme = parts.scheme.lower()
        if scheme == "content" and parts.netloc == provider.authority:
            data = provider.open_read(uri, grant, grant.consumer)
        elif scheme == "content" and self.platform.broker is not None:
            try:
                data = self.platform.broker.open_read(uri)
            except (OSError, StorageBrokerError) as e:
                raise ResolutionError(f"Cannot read {uri}: {e}") from e
        elif scheme == "file":
            data = self._read_public_file(Path(unquote(parts.path)))
        else:
            raise ResolutionError(f"Cannot read {uri} through a grant")

        logger.debug("Grant %s redeemed by %s", grant.grant_id, grant.consumer)
        return data

    def fetch(self, uri: str, grant: ReadGrant, directory: Path | None = None) -> Path:
        """Copy the granted bytes to a local file and return its path."""
        data = self.read(uri, grant)
        if directory is None:
            directory = Path(tempfile.mkdtemp(prefix="filedrop-"))
        name = Path(unquote(urlsplit(uri).path)).name or grant.grant_id
        target = Path(directory) / name
        target.write_bytes(data)
        return target

    def view(self, uri: str, grant: ReadGrant | None) -> str:
        """Show ``uri`` with the desktop's default application.

        Web URLs are handed over as they are. Anything else is redeemed
        into a local copy first. Returns what was opened.
        """
        if urlsplit(uri).scheme.lower() in WEB_SCHEMES:
            target = uri
        elif grant is None:
            raise GrantError(f"A read grant is required to view {uri}")
        else:
            target = str(self.fetch(uri, grant))
        open_with_system(target)
        return target

    def _read_public_file(self, path: Path) -> bytes:
        path = path.resolve()
        public_dir = Path(self.platform.public_dir).expanduser().resolve()
        if not path.is_relative_to(public_dir):
            raise ResolutionError(f"Not in the public directory: {path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise ResolutionError(f"Cannot read {path}: {e}") from e
