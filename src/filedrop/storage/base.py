"""Storage abstractions: entry lifecycle, broker capability, strategies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from ..errors import StorageStateError
from ..payload import Payload, PublishedReference

DOWNLOADS = "downloads"


class EntryState(str, Enum):
    """Lifecycle state of a broker entry."""

    PENDING = "pending"
    VISIBLE = "visible"
    ABANDONED = "abandoned"


@dataclass
class StorageEntry:
    """A reservation in a broker collection.

    An entry starts PENDING and leaves it exactly once: ``commit()`` makes
    it VISIBLE, ``abandon()`` marks it ABANDONED. Both are terminal.
    """

    entry_id: str
    name: str
    media_type: str
    uri: str
    collection: str = DOWNLOADS
    state: EntryState = EntryState.PENDING
    size: int = 0

    @property
    def is_pending(self) -> bool:
        return self.state is EntryState.PENDING

    def commit(self) -> None:
        self._leave_pending(EntryState.VISIBLE)

    def abandon(self) -> None:
        self._leave_pending(EntryState.ABANDONED)

    def _leave_pending(self, target: EntryState) -> None:
        if self.state is not EntryState.PENDING:
            raise StorageStateError(
                f"Cannot move entry {self.entry_id} from "
                f"{self.state.value} to {target.value}"
            )
        self.state = target

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "name": self.name,
            "media_type": self.media_type,
            "uri": self.uri,
            "collection": self.collection,
            "state": self.state.value,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StorageEntry":
        return cls(
            entry_id=data["entry_id"],
            name=data["name"],
            media_type=data["media_type"],
            uri=data["uri"],
            collection=data.get("collection", DOWNLOADS),
            state=EntryState(data.get("state", EntryState.PENDING.value)),
            size=int(data.get("size", 0)),
        )


class StorageBroker(ABC):
    """Mediates access to a shared public storage area.

    Implementations must hide PENDING entries from readers: ``open_read``
    only serves VISIBLE entries.
    """

    @property
    def available(self) -> bool:
        """Whether the broker can currently accept reservations."""
        return True

    @abstractmethod
    def reserve(
        self, name: str, media_type: str, collection: str = DOWNLOADS
    ) -> StorageEntry:
        """Create a PENDING entry.

        Raises:
            StorageBrokerError: If the reservation is denied.
        """
        ...

    @abstractmethod
    def open_write(self, entry: StorageEntry) -> BinaryIO:
        """Open a write stream against a PENDING entry."""
        ...

    @abstractmethod
    def commit(self, entry: StorageEntry) -> None:
        """Make a PENDING entry VISIBLE. This is the commit point."""
        ...

    @abstractmethod
    def abandon(self, entry: StorageEntry) -> None:
        """Mark a PENDING entry ABANDONED and discard its bytes."""
        ...

    @abstractmethod
    def listing(
        self, collection: str = DOWNLOADS, include_pending: bool = True
    ) -> list[StorageEntry]:
        """List a collection, PENDING reservations included unless excluded."""
        ...

    @abstractmethod
    def open_read(self, uri: str) -> bytes:
        """Read the bytes of a VISIBLE entry."""
        ...


class Indexer(ABC):
    """Announces new files in a public directory to other applications."""

    @abstractmethod
    def scan(self, path: Path, media_type: str) -> None: ...


class PublicStorage(ABC):
    """A strategy for writing a payload somewhere publicly discoverable."""

    name: str

    @abstractmethod
    def store(self, payload: Payload) -> PublishedReference:
        """Durably store a payload and return a reference to it.

        Raises:
            StorageBrokerError: If a reservation is denied.
            StorageIOError: If writing fails.
        """
        ...
