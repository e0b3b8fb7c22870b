"""Tests for filedrop.publisher and storage selection."""

import base64
from unittest.mock import MagicMock

import pytest

from filedrop.errors import DecodingError, StorageBrokerError, ValidationError
from filedrop.platform import Platform, select_storage
from filedrop.publisher import Publisher
from filedrop.storage import BrokeredStorage, DirectStorage, EntryState


class TestSelectStorage:
    """Tests for choosing a storage strategy."""

    def test_broker_preferred_when_available(self, broker_platform):
        assert isinstance(select_storage(broker_platform), BrokeredStorage)

    def test_direct_without_broker(self, legacy_platform):
        assert isinstance(select_storage(legacy_platform), DirectStorage)

    def test_direct_when_broker_unavailable(self, broker_platform, monkeypatch):
        monkeypatch.setattr(type(broker_platform.broker), "available", property(lambda s: False))
        assert isinstance(select_storage(broker_platform), DirectStorage)

    def test_forced_direct(self, broker_platform):
        broker_platform.storage_mode = "direct"
        assert isinstance(select_storage(broker_platform), DirectStorage)

    def test_forced_broker_without_broker(self, legacy_platform):
        legacy_platform.storage_mode = "broker"
        with pytest.raises(StorageBrokerError, match="not available"):
            select_storage(legacy_platform)


class TestPublishBroker:
    """Publishing on a broker-capable platform."""

    def test_report_pdf_end_to_end(self, broker_platform, broker, pdf_stub):
        assert len(pdf_stub) == 17

        ref = Publisher(broker_platform).publish("report.pdf", pdf_stub, "application/pdf")

        assert ref.is_public is True
        assert ref.uri.startswith("content://")
        assert ref.uri.endswith("/report.pdf")
        entry = broker.lookup(ref.uri)
        assert entry.state is EntryState.VISIBLE
        assert entry.size == 17
        assert broker.open_read(ref.uri) == pdf_stub

    def test_public_dir_untouched(self, broker_platform, public_dir, pdf_stub):
        Publisher(broker_platform).publish("report.pdf", pdf_stub)
        assert not public_dir.exists()

    def test_media_type_recorded(self, broker_platform, broker):
        ref = Publisher(broker_platform).publish("scan.png", b"\x89PNG", "image/png")
        assert broker.lookup(ref.uri).media_type == "image/png"

    def test_default_media_type(self, broker_platform, broker, pdf_stub):
        ref = Publisher(broker_platform).publish("report.pdf", pdf_stub)
        assert broker.lookup(ref.uri).media_type == "application/pdf"


class TestPublishLegacy:
    """Publishing on a platform without a broker."""

    def test_report_pdf_end_to_end(self, legacy_platform, public_dir, monkeypatch, pdf_stub):
        scan = MagicMock(side_effect=RuntimeError("scanner offline"))
        monkeypatch.setattr(legacy_platform.indexer, "scan", scan)

        ref = Publisher(legacy_platform).publish("report.pdf", pdf_stub, "application/pdf")

        assert public_dir.is_dir()
        assert (public_dir / "report.pdf").read_bytes() == pdf_stub
        scan.assert_called_once()
        assert ref.uri.startswith("file:///")
        assert ref.uri.endswith("/Downloads/report.pdf")
        assert ref.is_public is True

    def test_catalog_updated(self, legacy_platform, public_dir, pdf_stub):
        Publisher(legacy_platform).publish("report.pdf", pdf_stub)
        catalog = legacy_platform.indexer.entries()
        assert str((public_dir / "report.pdf").resolve()) in catalog


class TestPublishValidation:
    """Invalid input never reaches storage."""

    @pytest.fixture
    def reserve(self, broker, monkeypatch):
        spy = MagicMock(wraps=broker.reserve)
        monkeypatch.setattr(broker, "reserve", spy)
        return spy

    @pytest.mark.parametrize("name", ["", None])
    def test_missing_name(self, broker_platform, broker, reserve, name, pdf_stub):
        with pytest.raises(ValidationError):
            Publisher(broker_platform).publish(name, pdf_stub, "application/pdf")
        reserve.assert_not_called()
        assert broker.listing(include_pending=True) == []

    @pytest.mark.parametrize("data", [b"", None])
    def test_missing_data(self, broker_platform, reserve, data):
        with pytest.raises(ValidationError):
            Publisher(broker_platform).publish("report.pdf", data)
        reserve.assert_not_called()

    def test_missing_name_legacy(self, legacy_platform, public_dir, pdf_stub):
        with pytest.raises(ValidationError):
            Publisher(legacy_platform).publish("", pdf_stub)
        assert not public_dir.exists()

    def test_invalid_media_type(self, broker_platform, reserve, pdf_stub):
        with pytest.raises(ValidationError):
            Publisher(broker_platform).publish("report.pdf", pdf_stub, "pdf")
        reserve.assert_not_called()

    def test_malformed_base64(self, broker_platform, reserve):
        with pytest.raises(DecodingError):
            Publisher(broker_platform).publish_base64("report.pdf", "%%% not base64 %%%")
        reserve.assert_not_called()

    def test_publish_base64(self, broker_platform, broker, pdf_stub):
        encoded = base64.b64encode(pdf_stub).decode("ascii")
        ref = Publisher(broker_platform).publish_base64("report.pdf", encoded)
        assert broker.open_read(ref.uri) == pdf_stub


class TestPublishPlatformInjection:
    """The publisher works against any broker implementation."""

    def test_custom_broker_protocol(self, public_dir, broker, pdf_stub):
        platform = Platform(public_dir=public_dir, broker=broker)
        ref = Publisher(platform).publish("a.pdf", pdf_stub)
        assert ref.uri.startswith(f"content://{broker.authority}/downloads/")
