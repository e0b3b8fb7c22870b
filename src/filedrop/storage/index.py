"""Index refresh notifiers for the legacy storage path."""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from .base import Indexer

logger = logging.getLogger(__name__)

CATALOG_FILENAME = ".filedrop-catalog.json"


class CatalogIndexer(Indexer):
    """Record scanned files in a JSON catalog other applications can read."""

    def __init__(self, catalog_path: Path) -> None:
        self.catalog_path = Path(catalog_path).expanduser()

    @classmethod
    def for_directory(cls, directory: Path) -> "CatalogIndexer":
        return cls(Path(directory).expanduser() / CATALOG_FILENAME)

    def scan(self, path: Path, media_type: str) -> None:
        catalog = self.entries()
        catalog[str(Path(path).resolve())] = {
            "media_type": media_type,
            "size": Path(path).stat().st_size,
            "scanned_at": datetime.now(timezone.utc).isoformat(),
        }
        tmp = self.catalog_path.with_name(self.catalog_path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(catalog, f, indent=2, sort_keys=True)
        os.replace(tmp, self.catalog_path)
        logger.debug("Indexed %s as %s", path, media_type)

    def entries(self) -> dict[str, dict]:
        if not self.catalog_path.is_file():
            return {}
        with open(self.catalog_path, encoding="utf-8") as f:
            return json.load(f)
