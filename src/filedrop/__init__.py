"""filedrop - Publish payloads to public storage and open them in external viewers."""

__version__ = "1.0.0"

from .errors import (
    DecodingError,
    FiledropError,
    GrantError,
    LaunchError,
    ResolutionError,
    StorageBrokerError,
    StorageIOError,
    StorageStateError,
    ValidationError,
    to_rejection,
)
from .opener import Opener
from .payload import OpenResult, Payload, PublishedReference, ViewRequest
from .platform import Platform, platform_from_config, select_storage
from .publisher import Publisher
from .reader import Reader

__all__ = [
    "Publisher",
    "Opener",
    "Reader",
    "Platform",
    "platform_from_config",
    "select_storage",
    "Payload",
    "PublishedReference",
    "ViewRequest",
    "OpenResult",
    "FiledropError",
    "ValidationError",
    "DecodingError",
    "StorageBrokerError",
    "StorageIOError",
    "StorageStateError",
    "ResolutionError",
    "GrantError",
    "LaunchError",
    "to_rejection",
    "__version__",
]
