"""Capabilities the publisher and opener run against."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import ENV_CONFIG, FiledropConfig
from .errors import StorageBrokerError
from .launcher import Launcher, ViewerLauncher
from .sharing import ShareProvider
from .storage import (
    BrokeredStorage,
    CatalogIndexer,
    DirectStorage,
    Indexer,
    LocalBroker,
    PublicStorage,
    StorageBroker,
)
from .viewers import discover_viewers

logger = logging.getLogger(__name__)


@dataclass
class Platform:
    """Injected platform capabilities.

    ``broker`` is None on platforms without brokered storage; publishing
    then falls back to direct writes into ``public_dir``.
    """

    public_dir: Path
    broker: StorageBroker | None = None
    indexer: Indexer | None = None
    share_provider: ShareProvider | None = None
    launcher: Launcher | None = None
    storage_mode: str = "auto"

    @property
    def supports_broker(self) -> bool:
        return self.broker is not None and self.broker.available


def select_storage(platform: Platform) -> PublicStorage:
    """Pick the publishing strategy for this call.

    Raises:
        StorageBrokerError: If brokered storage is forced but unavailable.
    """
    if platform.storage_mode == "broker":
        if not platform.supports_broker:
            raise StorageBrokerError("Storage broker is not available")
        return BrokeredStorage(platform.broker)

    if platform.storage_mode == "auto" and platform.supports_broker:
        return BrokeredStorage(platform.broker)

    return DirectStorage(platform.public_dir, platform.indexer)


def platform_from_config(config: FiledropConfig) -> Platform:
    """Build the default platform for a configuration."""
    broker = None
    if config.storage.broker_root is not None and config.storage.mode != "direct":
        broker = LocalBroker(config.storage.broker_root, config.storage.authority)

    # Viewers redeem grants with a fresh process that must load the same config.
    viewer_env = {}
    if config.config_path is not None:
        viewer_env[ENV_CONFIG] = str(Path(config.config_path).resolve())

    return Platform(
        public_dir=config.public_dir,
        broker=broker,
        indexer=CatalogIndexer.for_directory(config.public_dir),
        share_provider=ShareProvider(
            roots=config.share.roots,
            authority=config.share.authority,
            secret=config.share.secret,
            grant_ttl=config.share.grant_ttl,
        ),
        launcher=ViewerLauncher(discover_viewers(config), env=viewer_env),
        storage_mode=config.storage.mode,
    )
