"""Tests for filedrop.config module."""

from pathlib import Path

import pytest

from filedrop.config import (
    CONFIG_FILENAME,
    ENV_BROKER_ROOT,
    ENV_CONFIG,
    ENV_PUBLIC_DIR,
    ENV_SHARE_SECRET,
    ENV_STORAGE_MODE,
    FiledropConfig,
    config_to_dict,
    create_default_config,
    find_config_file,
    hex_to_secret,
    load_config,
)
from filedrop.errors import FiledropError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        ENV_PUBLIC_DIR,
        ENV_BROKER_ROOT,
        ENV_STORAGE_MODE,
        ENV_SHARE_SECRET,
        ENV_CONFIG,
    ):
        monkeypatch.delenv(var, raising=False)


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_finds_config_in_current_dir(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("public_dir: out")
        assert find_config_file(tmp_path) == config_path

    def test_finds_config_in_parent_dir(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("public_dir: out")
        subdir = tmp_path / "sub" / "deep"
        subdir.mkdir(parents=True)
        assert find_config_file(subdir) == config_path

    def test_returns_none_when_not_found(self, tmp_path):
        assert find_config_file(tmp_path) is None

    def test_starts_from_file_path(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("public_dir: out")
        file_path = tmp_path / "report.pdf"
        file_path.write_bytes(b"x")
        assert find_config_file(file_path) == config_path


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_from_file(self, tmp_path):
        secret = "ab" * 32
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text(f"""
public_dir: "exports"
storage:
  mode: "broker"
  broker_root: "media"
  authority: "com.example.media"
share:
  authority: "com.example.fileprovider"
  grant_ttl: 60
  secret: "{secret}"
  roots:
    cache: "cache"
viewers:
  image: false
viewer_commands:
  pdf: ["evince", "--fullscreen"]
""")

        config = load_config(config_path=config_path)

        assert config.public_dir == tmp_path / "exports"
        assert config.storage.mode == "broker"
        assert config.storage.broker_root == tmp_path / "media"
        assert config.storage.authority == "com.example.media"
        assert config.share.authority == "com.example.fileprovider"
        assert config.share.grant_ttl == 60
        assert config.share.secret == bytes.fromhex(secret)
        assert config.share.roots == {"cache": tmp_path / "cache"}
        assert config.viewers == {"image": False}
        assert config.viewer_commands == {"pdf": ["evince", "--fullscreen"]}
        assert config.config_path == config_path

    def test_defaults_without_file(self, tmp_path):
        config = load_config(start_path=tmp_path)
        assert config.public_dir == Path.home() / "Downloads"
        assert config.storage.mode == "auto"
        assert config.storage.broker_root is None
        assert config.share.grant_ttl == 300
        assert config.config_path is None

    def test_absolute_paths_kept(self, tmp_path):
        target = tmp_path / "abs"
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text(f'public_dir: "{target}"\n')
        assert load_config(config_path=config_path).public_dir == target

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("public_dir: from-file\n")
        monkeypatch.setenv(ENV_PUBLIC_DIR, str(tmp_path / "from-env"))
        monkeypatch.setenv(ENV_BROKER_ROOT, str(tmp_path / "broker"))
        monkeypatch.setenv(ENV_STORAGE_MODE, "direct")
        monkeypatch.setenv(ENV_SHARE_SECRET, "cd" * 16)

        config = load_config(config_path=config_path)

        assert config.public_dir == tmp_path / "from-env"
        assert config.storage.broker_root == tmp_path / "broker"
        assert config.storage.mode == "direct"
        assert config.share.secret == bytes.fromhex("cd" * 16)

    def test_argument_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv(ENV_PUBLIC_DIR, str(tmp_path / "from-env"))
        config = load_config(start_path=tmp_path, public_dir_override=tmp_path / "arg")
        assert config.public_dir == tmp_path / "arg"

    def test_config_named_by_env(self, tmp_path, monkeypatch):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        config_path = elsewhere / "viewer.yaml"
        config_path.write_text("public_dir: shared\n")
        monkeypatch.setenv(ENV_CONFIG, str(config_path))

        config = load_config(start_path=tmp_path)

        assert config.config_path == config_path
        assert config.public_dir == elsewhere / "shared"

    def test_explicit_file_beats_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv(ENV_CONFIG, str(tmp_path / "missing.yaml"))
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("public_dir: mine\n")

        assert load_config(config_path=config_path).config_path == config_path

    def test_missing_env_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(ENV_CONFIG, str(tmp_path / "missing.yaml"))
        with pytest.raises(FiledropError, match="not found"):
            load_config(start_path=tmp_path)

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FiledropError, match="not found"):
            load_config(config_path=tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("storage: [unclosed\n")
        with pytest.raises(FiledropError, match="Invalid YAML"):
            load_config(config_path=config_path)

    def test_invalid_mode(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("storage:\n  mode: sometimes\n")
        with pytest.raises(FiledropError, match="Invalid storage mode"):
            load_config(config_path=config_path)

    def test_broker_mode_requires_root(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("storage:\n  mode: broker\n")
        with pytest.raises(FiledropError, match="requires storage.broker_root"):
            load_config(config_path=config_path)

    def test_invalid_grant_ttl(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("share:\n  grant_ttl: 0\n")
        with pytest.raises(FiledropError, match="grant_ttl"):
            load_config(config_path=config_path)

    def test_invalid_viewer_command(self, tmp_path):
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text("viewer_commands:\n  pdf: evince\n")
        with pytest.raises(FiledropError, match="non-empty list"):
            load_config(config_path=config_path)


class TestSecrets:
    """Tests for hex_to_secret."""

    def test_valid(self):
        assert hex_to_secret("00" * 16) == bytes(16)

    def test_not_hex(self):
        with pytest.raises(FiledropError, match="must be hex"):
            hex_to_secret("zz" * 16)

    def test_too_short(self):
        with pytest.raises(FiledropError, match="at least 16 bytes"):
            hex_to_secret("00" * 4)


class TestCreateDefaultConfig:
    """Tests for create_default_config."""

    def test_creates_loadable_config(self, tmp_path):
        path = create_default_config(tmp_path)

        assert path == tmp_path / CONFIG_FILENAME
        config = load_config(config_path=path)
        assert config.storage.mode == "auto"
        assert len(config.share.secret) == 32
        assert "cache" in config.share.roots

    def test_refuses_to_overwrite(self, tmp_path):
        create_default_config(tmp_path)
        with pytest.raises(FiledropError, match="already exists"):
            create_default_config(tmp_path)

    def test_secrets_differ(self, tmp_path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.mkdir()
        b.mkdir()
        secret_a = load_config(config_path=create_default_config(a)).share.secret
        secret_b = load_config(config_path=create_default_config(b)).share.secret
        assert secret_a != secret_b


class TestConfigToDict:
    """Tests for config_to_dict."""

    def test_secret_masked(self):
        config = FiledropConfig()
        config.share.secret = b"x" * 32
        data = config_to_dict(config)
        assert data["share"]["secret"] == "********"

    def test_no_secret(self):
        assert config_to_dict(FiledropConfig())["share"]["secret"] is None

    def test_paths_are_strings(self, tmp_path):
        config = FiledropConfig(public_dir=tmp_path)
        assert config_to_dict(config)["public_dir"] == str(tmp_path)
