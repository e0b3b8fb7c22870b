"""Two-phase publishing through a storage broker."""

import logging

from ..errors import FiledropError, StorageIOError
from ..payload import Payload, PublishedReference
from .base import DOWNLOADS, PublicStorage, StorageBroker, StorageEntry

logger = logging.getLogger(__name__)


class BrokeredStorage(PublicStorage):
    """Reserve, write, commit.

    External readers see nothing until ``broker.commit`` succeeds. Every
    failure after the reservation routes the entry to ABANDONED.
    """

    name = "broker"

    def __init__(self, broker: StorageBroker, collection: str = DOWNLOADS) -> None:
        self.broker = broker
        self.collection = collection

    def store(self, payload: Payload) -> PublishedReference:
        entry = self.broker.reserve(payload.name, payload.media_type, self.collection)

        try:
            with self.broker.open_write(entry) as out:
                out.write(payload.data)
        except OSError as e:
            self._abandon(entry)
            raise StorageIOError(f"Failed to write {payload.name}: {e}") from e

        try:
            self.broker.commit(entry)
        except (OSError, FiledropError) as e:
            self._abandon(entry)
            raise StorageIOError(f"Failed to commit {payload.name}: {e}") from e

        return PublishedReference(uri=entry.uri, is_public=True)

    def _abandon(self, entry: StorageEntry) -> None:
        try:
            self.broker.abandon(entry)
        except (OSError, FiledropError) as e:
            logger.warning("Could not clean up entry %s: %s", entry.uri, e)
