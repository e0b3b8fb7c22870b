"""Public storage strategies for filedrop.

Two strategies publish a payload: BrokeredStorage, which goes through a
broker's reserve/write/commit protocol, and DirectStorage, which writes
into a public directory and refreshes an index. ``select_storage``
picks one from the platform's capabilities.
"""

from .base import (
    DOWNLOADS,
    EntryState,
    Indexer,
    PublicStorage,
    StorageBroker,
    StorageEntry,
)
from .broker import LocalBroker
from .brokered import BrokeredStorage
from .direct import DirectStorage
from .index import CatalogIndexer

__all__ = [
    "DOWNLOADS",
    "EntryState",
    "Indexer",
    "PublicStorage",
    "StorageBroker",
    "StorageEntry",
    "LocalBroker",
    "BrokeredStorage",
    "DirectStorage",
    "CatalogIndexer",
]
