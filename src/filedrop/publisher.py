"""Publishing payloads into public storage."""

import logging

from .payload import Payload, PublishedReference
from .platform import Platform, select_storage

logger = logging.getLogger(__name__)


class Publisher:
    """Write named payloads somewhere other applications can find them.

    Each call validates its input before touching storage, so a rejected
    payload leaves no reservation or file behind.
    """

    def __init__(self, platform: Platform) -> None:
        self.platform = platform

    def publish(
        self, name: str | None, data: bytes | None, media_type: str | None = None
    ) -> PublishedReference:
        """Publish raw bytes.

        Raises:
            ValidationError: If name or data is missing or empty.
            StorageBrokerError: If the broker denies the reservation.
            StorageIOError: If writing fails.
        """
        return self._store(Payload.create(name, data, media_type))

    def publish_base64(
        self, name: str | None, encoded: str | None, media_type: str | None = None
    ) -> PublishedReference:
        """Publish base64 text, decoding it before any reservation.

        Raises:
            DecodingError: If ``encoded`` is not valid base64.
        """
        return self._store(Payload.from_base64(name, encoded, media_type))

    def _store(self, payload: Payload) -> PublishedReference:
        storage = select_storage(self.platform)
        logger.debug(
            "Publishing %s (%s, %d bytes) via %s storage",
            payload.name,
            payload.media_type,
            len(payload.data),
            storage.name,
        )
        reference = storage.store(payload)
        logger.info("Published %s as %s", payload.name, reference.uri)
        return reference
