"""Legacy publishing: direct writes into a public directory."""

import logging
import os
import uuid
from pathlib import Path

from ..errors import StorageIOError
from ..payload import Payload, PublishedReference
from .base import Indexer, PublicStorage

logger = logging.getLogger(__name__)


class DirectStorage(PublicStorage):
    """Write straight to ``public_dir/name``, then ask the indexer to scan it.

    There is no broker to announce the file, so the index refresh is the
    only discovery mechanism. It is best effort.
    """

    name = "direct"

    def __init__(self, public_dir: Path, indexer: Indexer | None = None) -> None:
        self.public_dir = Path(public_dir).expanduser()
        self.indexer = indexer

    def store(self, payload: Payload) -> PublishedReference:
        try:
            self.public_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(
                f"Failed to access directory {self.public_dir}: {e}"
            ) from e

        path = self.public_dir / payload.name
        # Bytes go to a hidden part file first, then appear under the real
        # name complete or not at all.
        part = self.public_dir / f".{payload.name}.{uuid.uuid4().hex[:8]}.part"
        try:
            with open(part, "xb") as f:
                f.write(payload.data)
            _move_into_place(part, path)
        except FileExistsError as e:
            raise StorageIOError(f"File already exists: {path}") from e
        except OSError as e:
            raise StorageIOError(f"Failed to write {path}: {e}") from e
        finally:
            part.unlink(missing_ok=True)

        self._refresh_index(path, payload.media_type)
        logger.info("Wrote %s (%d bytes)", path, len(payload.data))
        return PublishedReference(uri=path.resolve().as_uri(), is_public=True)

    def _refresh_index(self, path: Path, media_type: str) -> None:
        if self.indexer is None:
            return
        try:
            self.indexer.scan(path, media_type)
        except Exception as e:
            logger.warning("Index refresh failed for %s: %s", path, e)


def _move_into_place(part: Path, path: Path) -> None:
    """Publish ``part`` as ``path`` without ever replacing an existing file."""
    try:
        os.link(part, path)
    except FileExistsError:
        raise
    except OSError as e:
        # No hard links here (FAT, exFAT, some network mounts).
        logger.debug("Hard link unsupported for %s (%s), renaming", path, e)
        if path.exists():
            raise FileExistsError(f"File already exists: {path}") from e
        os.replace(part, path)
