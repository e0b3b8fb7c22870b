"""Filesystem-backed storage broker.

Layout under the broker root::

    .filedrop-index.json      entry records
    .pending/<entry_id>       bytes of reserved, uncommitted entries
    <collection>/<name>       committed, publicly visible files

Pending bytes never live under a collection directory, so a reader
walking the public area sees either nothing or the complete file.
"""

import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

from ..errors import StorageBrokerError, StorageStateError
from .base import DOWNLOADS, EntryState, StorageBroker, StorageEntry

logger = logging.getLogger(__name__)

INDEX_FILENAME = ".filedrop-index.json"
PENDING_DIRNAME = ".pending"
DEFAULT_AUTHORITY = "filedrop.media"


class LocalBroker(StorageBroker):
    """Broker that mediates a public area rooted at a local directory."""

    def __init__(self, root: Path, authority: str = DEFAULT_AUTHORITY) -> None:
        self.root = Path(root).expanduser()
        self.authority = authority
        self._lock = threading.Lock()
        try:
            (self.root / PENDING_DIRNAME).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageBrokerError(
                f"Cannot initialize broker at {self.root}: {e}"
            ) from e

    @property
    def available(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)

    @property
    def index_path(self) -> Path:
        return self.root / INDEX_FILENAME

    def pending_path(self, entry: StorageEntry) -> Path:
        return self.root / PENDING_DIRNAME / entry.entry_id

    def public_path(self, entry: StorageEntry) -> Path:
        return self.root / entry.collection / entry.name

    def reserve(
        self, name: str, media_type: str, collection: str = DOWNLOADS
    ) -> StorageEntry:
        if not self.available:
            raise StorageBrokerError(f"Storage broker unavailable at {self.root}")

        with self._lock:
            records = self._load_index()
            for record in records.values():
                if (
                    record["collection"] == collection
                    and record["name"] == name
                    and record["state"] != EntryState.ABANDONED.value
                ):
                    raise StorageBrokerError(
                        f"An entry named {name!r} already exists in {collection}"
                    )
            if (self.root / collection / name).exists():
                raise StorageBrokerError(
                    f"A file named {name!r} already exists in {collection}"
                )

            entry_id = uuid.uuid4().hex
            entry = StorageEntry(
                entry_id=entry_id,
                name=name,
                media_type=media_type,
                uri=f"content://{self.authority}/{collection}/{entry_id}/{quote(name)}",
                collection=collection,
            )
            try:
                self.pending_path(entry).touch(exist_ok=False)
            except OSError as e:
                raise StorageBrokerError(f"Failed to create entry for {name!r}: {e}") from e

            records[entry_id] = entry.to_dict()
            self._save_index(records)

        logger.debug("Reserved %s as %s", name, entry.uri)
        return entry

    def open_write(self, entry: StorageEntry) -> BinaryIO:
        self._require_pending(entry)
        return open(self.pending_path(entry), "wb")

    def commit(self, entry: StorageEntry) -> None:
        with self._lock:
            self._require_pending(entry)
            pending = self.pending_path(entry)
            target = self.public_path(entry)

            with open(pending, "rb+") as f:
                os.fsync(f.fileno())
            target.parent.mkdir(parents=True, exist_ok=True)
            if target.exists():
                raise FileExistsError(f"Refusing to replace existing file: {target}")
            os.replace(pending, target)

            # The entry only turns VISIBLE once the index says so; if the
            # index cannot be written the bytes go back to the pending area.
            record = dict(
                entry.to_dict(),
                state=EntryState.VISIBLE.value,
                size=target.stat().st_size,
            )
            try:
                records = self._load_index()
                records[entry.entry_id] = record
                self._save_index(records)
            except StorageBrokerError:
                self._unpublish(target, pending)
                raise

            entry.size = record["size"]
            entry.commit()

        logger.info("Committed %s (%d bytes)", entry.uri, entry.size)

    def _unpublish(self, target: Path, pending: Path) -> None:
        try:
            os.replace(target, pending)
        except OSError as e:
            logger.warning("Could not withdraw %s after failed commit: %s", target, e)

    def abandon(self, entry: StorageEntry) -> None:
        with self._lock:
            if not entry.is_pending:
                raise StorageStateError(
                    f"Cannot abandon entry {entry.entry_id} in state {entry.state.value}"
                )
            entry.abandon()
            records = self._load_index()
            records.pop(entry.entry_id, None)
            self._save_index(records)
            self.pending_path(entry).unlink(missing_ok=True)

        logger.debug("Abandoned %s", entry.uri)

    def listing(
        self, collection: str = DOWNLOADS, include_pending: bool = True
    ) -> list[StorageEntry]:
        """List entries of a collection.

        Reservations are listed with state PENDING so other clients see the
        name is taken; pass ``include_pending=False`` for readable entries only.
        """
        wanted = {EntryState.VISIBLE.value}
        if include_pending:
            wanted.add(EntryState.PENDING.value)
        with self._lock:
            records = self._load_index()
        entries = [
            StorageEntry.from_dict(r)
            for r in records.values()
            if r["collection"] == collection and r["state"] in wanted
        ]
        return sorted(entries, key=lambda e: e.name)

    def lookup(self, uri: str) -> StorageEntry | None:
        """Find the entry record for a uri, in any state."""
        with self._lock:
            records = self._load_index()
        for record in records.values():
            if record["uri"] == uri:
                return StorageEntry.from_dict(record)
        return None

    def open_read(self, uri: str) -> bytes:
        entry = self.lookup(uri)
        if entry is None or entry.state is not EntryState.VISIBLE:
            raise StorageBrokerError(f"No visible entry for {uri}")
        return self.public_path(entry).read_bytes()

    def _require_pending(self, entry: StorageEntry) -> None:
        if not entry.is_pending:
            raise StorageStateError(
                f"Entry {entry.entry_id} is {entry.state.value}, not pending"
            )

    def _load_index(self) -> dict[str, dict]:
        try:
            with open(self.index_path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            raise StorageBrokerError(f"Cannot read broker index {self.index_path}: {e}") from e

    def _save_index(self, records: dict[str, dict]) -> None:
        tmp = self.index_path.with_name(self.index_path.name + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, sort_keys=True)
            os.replace(tmp, self.index_path)
        except OSError as e:
            raise StorageBrokerError(f"Cannot write broker index {self.index_path}: {e}") from e
