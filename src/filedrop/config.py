"""Configuration management for filedrop.

Handles loading .filedrop.yaml files with directory traversal,
environment variable overrides, and default values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import FiledropError
from .sharing import DEFAULT_AUTHORITY as DEFAULT_SHARE_AUTHORITY
from .sharing import DEFAULT_GRANT_TTL, generate_secret
from .storage.broker import DEFAULT_AUTHORITY as DEFAULT_BROKER_AUTHORITY

CONFIG_FILENAME = ".filedrop.yaml"
ENV_PUBLIC_DIR = "FILEDROP_PUBLIC_DIR"
ENV_BROKER_ROOT = "FILEDROP_BROKER_ROOT"
ENV_STORAGE_MODE = "FILEDROP_STORAGE_MODE"
ENV_SHARE_SECRET = "FILEDROP_SHARE_SECRET"
ENV_CONFIG = "FILEDROP_CONFIG"

STORAGE_MODES = ("auto", "broker", "direct")


@dataclass
class StorageConfig:
    """Where and how payloads are published."""

    mode: str = "auto"  # "auto", "broker", "direct"
    broker_root: Path | None = None  # None = no broker capability
    authority: str = DEFAULT_BROKER_AUTHORITY


@dataclass
class ShareConfig:
    """Private roots that may be shared, and grant settings."""

    authority: str = DEFAULT_SHARE_AUTHORITY
    roots: dict[str, Path] = field(default_factory=dict)
    grant_ttl: int = DEFAULT_GRANT_TTL
    secret: bytes | None = None


@dataclass
class FiledropConfig:
    """Complete filedrop configuration."""

    public_dir: Path = field(default_factory=lambda: Path.home() / "Downloads")
    storage: StorageConfig = field(default_factory=StorageConfig)
    share: ShareConfig = field(default_factory=ShareConfig)
    viewers: dict[str, bool] | None = None  # {name: enabled}
    viewer_commands: dict[str, list[str]] = field(default_factory=dict)
    config_path: Path | None = None  # Path where config was loaded from

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            FiledropError: If configuration is invalid.
        """
        if self.storage.mode not in STORAGE_MODES:
            raise FiledropError(
                f"Invalid storage mode: {self.storage.mode}. "
                f"Must be one of: {', '.join(STORAGE_MODES)}"
            )

        if self.storage.mode == "broker" and self.storage.broker_root is None:
            raise FiledropError("storage mode 'broker' requires storage.broker_root")

        if not isinstance(self.share.grant_ttl, int) or self.share.grant_ttl <= 0:
            raise FiledropError("share.grant_ttl must be a positive integer")

        for name in self.share.roots:
            if not name or "/" in name:
                raise FiledropError(f"Invalid share root name: {name!r}")

        for name, argv in self.viewer_commands.items():
            if not isinstance(argv, list) or not argv:
                raise FiledropError(
                    f"Command for viewer '{name}' must be a non-empty list"
                )


def hex_to_secret(hex_str: str) -> bytes:
    """Convert a hex string from config or environment to secret bytes."""
    try:
        secret = bytes.fromhex(hex_str)
    except ValueError as e:
        raise FiledropError(f"Invalid share secret (must be hex): {e}") from e
    if len(secret) < 16:
        raise FiledropError("Share secret must be at least 16 bytes")
    return secret


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find .filedrop.yaml by traversing up from start_path.

    Args:
        start_path: Directory to start searching from. Defaults to cwd.

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path).resolve()

    if start_path.is_file():
        start_path = start_path.parent

    current = start_path
    while True:
        config_path = current / CONFIG_FILENAME
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
    public_dir_override: Path | None = None,
) -> FiledropConfig:
    """Load configuration from file, environment, and overrides.

    The file is ``config_path``, else the one named by FILEDROP_CONFIG,
    else the nearest .filedrop.yaml above ``start_path``.

    Priority (highest to lowest):
    1. Function arguments (public_dir_override)
    2. Environment variables (FILEDROP_PUBLIC_DIR, FILEDROP_BROKER_ROOT,
       FILEDROP_STORAGE_MODE, FILEDROP_SHARE_SECRET)
    3. Config file (.filedrop.yaml)
    4. Defaults
    """
    config = FiledropConfig()

    if config_path is None and os.environ.get(ENV_CONFIG):
        config_path = os.environ[ENV_CONFIG]

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise FiledropError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(start_path)

    if config_path is not None:
        config = _load_config_file(config_path)

    env_public_dir = os.environ.get(ENV_PUBLIC_DIR)
    if env_public_dir:
        config.public_dir = Path(env_public_dir).expanduser()

    env_broker_root = os.environ.get(ENV_BROKER_ROOT)
    if env_broker_root:
        config.storage.broker_root = Path(env_broker_root).expanduser()

    env_mode = os.environ.get(ENV_STORAGE_MODE)
    if env_mode:
        config.storage.mode = env_mode

    env_secret = os.environ.get(ENV_SHARE_SECRET)
    if env_secret:
        config.share.secret = hex_to_secret(env_secret)

    if public_dir_override is not None:
        config.public_dir = Path(public_dir_override)

    config.validate()
    return config


def _resolve_path(value: Any, base: Path) -> Path:
    """Expand ~ and resolve relative paths against the config directory."""
    path = Path(str(value)).expanduser()
    if not path.is_absolute():
        path = base / path
    return path


def _load_config_file(config_path: Path) -> FiledropConfig:
    """Load configuration from a YAML file.

    Raises:
        FiledropError: If file cannot be read or parsed.
    """
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise FiledropError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise FiledropError(f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise FiledropError(f"Config file {config_path} must contain a mapping")

    base = config_path.parent
    config = FiledropConfig(config_path=config_path)

    if "public_dir" in data:
        config.public_dir = _resolve_path(data["public_dir"], base)

    if "storage" in data and isinstance(data["storage"], dict):
        storage_data = data["storage"]
        broker_root = storage_data.get("broker_root")
        config.storage = StorageConfig(
            mode=str(storage_data.get("mode", config.storage.mode)),
            broker_root=_resolve_path(broker_root, base) if broker_root else None,
            authority=str(storage_data.get("authority", config.storage.authority)),
        )

    if "share" in data and isinstance(data["share"], dict):
        share_data = data["share"]
        roots = share_data.get("roots") or {}
        if not isinstance(roots, dict):
            raise FiledropError("share.roots must be a mapping of name to path")
        config.share = ShareConfig(
            authority=str(share_data.get("authority", config.share.authority)),
            roots={str(k): _resolve_path(v, base) for k, v in roots.items()},
            grant_ttl=share_data.get("grant_ttl", config.share.grant_ttl),
        )
        if share_data.get("secret"):
            config.share.secret = hex_to_secret(str(share_data["secret"]))

    if "viewers" in data and isinstance(data["viewers"], dict):
        config.viewers = {str(k): bool(v) for k, v in data["viewers"].items()}

    if "viewer_commands" in data and isinstance(data["viewer_commands"], dict):
        config.viewer_commands = {
            str(k): [str(a) for a in v] if isinstance(v, list) else v
            for k, v in data["viewer_commands"].items()
        }

    return config


def create_default_config(path: Path | None = None) -> Path:
    """Create a default .filedrop.yaml config file.

    Raises:
        FiledropError: If file already exists or cannot be written.
    """
    if path is None:
        path = Path.cwd()
    else:
        path = Path(path)

    config_path = path / CONFIG_FILENAME

    if config_path.exists():
        raise FiledropError(f"Config file already exists: {config_path}")

    config_content = f'''# filedrop configuration

# Public directory for direct (legacy) publishing
public_dir: "~/Downloads"

storage:
  mode: "auto"              # "auto", "broker", "direct"
  # broker_root: "~/.local/share/filedrop/media"
  authority: "{DEFAULT_BROKER_AUTHORITY}"

share:
  authority: "{DEFAULT_SHARE_AUTHORITY}"
  grant_ttl: {DEFAULT_GRANT_TTL}            # seconds
  # Signs read grants (or use FILEDROP_SHARE_SECRET env var)
  secret: "{generate_secret().hex()}"
  roots:
    cache: "~/.cache/filedrop"

# Disable viewers by name
# viewers:
#   image: false

# Replace a viewer's launch command; the URI is appended
# viewer_commands:
#   pdf: ["evince"]
'''

    try:
        config_path.write_text(config_content)
    except OSError as e:
        raise FiledropError(f"Cannot write config file: {e}") from e

    return config_path


def config_to_dict(config: FiledropConfig) -> dict[str, Any]:
    """Convert config to dictionary for display.

    Note: The share secret is masked.
    """
    return {
        "public_dir": str(config.public_dir),
        "storage": {
            "mode": config.storage.mode,
            "broker_root": (
                str(config.storage.broker_root) if config.storage.broker_root else None
            ),
            "authority": config.storage.authority,
        },
        "share": {
            "authority": config.share.authority,
            "roots": {k: str(v) for k, v in config.share.roots.items()},
            "grant_ttl": config.share.grant_ttl,
            "secret": "********" if config.share.secret else None,
        },
        "viewers": config.viewers,
        "viewer_commands": config.viewer_commands or None,
        "config_path": str(config.config_path) if config.config_path else None,
    }
