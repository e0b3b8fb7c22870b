"""Shared fixtures for filedrop tests."""

import pytest

from filedrop.errors import LaunchError
from filedrop.launcher import Launcher
from filedrop.platform import Platform
from filedrop.sharing import ShareProvider
from filedrop.storage import CatalogIndexer, LocalBroker

# 17-byte PDF stub
PDF_STUB = b"%PDF-1.7\n1 0 obj\n"


class RecordingLauncher(Launcher):
    """Launcher that records hand-offs instead of starting processes."""

    def __init__(self, accepts=("application/pdf", "image/png")):
        self.accepts = set(accepts)
        self.calls = []

    def choose(self, media_type):
        if media_type not in self.accepts:
            raise LaunchError(f"No viewer available for {media_type}")
        return "recorder"

    def launch(self, consumer, intent):
        self.calls.append((consumer, intent))


@pytest.fixture
def broker(tmp_path):
    return LocalBroker(tmp_path / "media")


@pytest.fixture
def public_dir(tmp_path):
    return tmp_path / "Downloads"


@pytest.fixture
def private_dir(tmp_path):
    directory = tmp_path / "data" / "app-private" / "cache"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def share_provider(private_dir):
    return ShareProvider(roots={"cache": private_dir})


@pytest.fixture
def launcher():
    return RecordingLauncher()


@pytest.fixture
def broker_platform(public_dir, broker, share_provider, launcher):
    return Platform(
        public_dir=public_dir,
        broker=broker,
        indexer=CatalogIndexer.for_directory(public_dir),
        share_provider=share_provider,
        launcher=launcher,
    )


@pytest.fixture
def legacy_platform(public_dir, share_provider, launcher):
    return Platform(
        public_dir=public_dir,
        broker=None,
        indexer=CatalogIndexer.for_directory(public_dir),
        share_provider=share_provider,
        launcher=launcher,
    )


@pytest.fixture
def pdf_stub():
    return PDF_STUB
