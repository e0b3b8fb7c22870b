"""Base class for filedrop viewer plugins."""

import logging
import os
import re
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..errors import LaunchError

if TYPE_CHECKING:
    from ..launcher import Intent

logger = logging.getLogger(__name__)

# Viewer names double as grant consumer identities.
_SAFE_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")

# MIME types must match: type/subtype (with +suffix), or type/* wildcard.
_SAFE_MIME_RE = re.compile(
    r"^[a-zA-Z0-9][a-zA-Z0-9!#$&\-^_.+]*"
    r"/(\*|[a-zA-Z0-9][a-zA-Z0-9!#$&\-^_.+]*)$"
)

ENV_MEDIA_TYPE = "FILEDROP_MEDIA_TYPE"


def system_open_command() -> list[str]:
    """Return the platform's "open with default application" command."""
    if sys.platform == "darwin":
        return ["open"]
    if sys.platform.startswith("win"):
        return ["cmd", "/c", "start", ""]
    return ["xdg-open"]


def granted_view_command() -> list[str]:
    """Command that redeems a hand-off's grant and shows the bytes locally."""
    return [sys.executable, "-m", "filedrop", "read", "--view"]


def open_with_system(target: str) -> None:
    """Show a local file or web URL with the desktop's default application.

    Raises:
        LaunchError: If the opener command cannot be started.
    """
    _spawn([*system_open_command(), target], dict(os.environ))


class ViewerPlugin(ABC):
    """Abstract base class for external viewer plugins.

    Every viewer must define class attributes:
        name: Unique identifier (e.g. "pdf", "image").
              Must match [a-z][a-z0-9_]*.
        mime_types: List of MIME patterns (exact or wildcard like "image/*").
                    Must be non-empty; each entry must be a valid MIME pattern.
        priority: Higher wins when multiple viewers match (default 0).

    And implement:
        default_command(): argv prefix used to launch the viewer; the
            resolved URI is appended as the final argument.

    A ``command`` passed to the constructor replaces the default, which is
    how the ``viewer_commands`` config section is applied.
    """

    name: str
    mime_types: list[str]
    priority: int = 0

    def __init__(self, command: list[str] | None = None) -> None:
        self._command = list(command) if command else None

    def __init_subclass__(cls, **kwargs: object) -> None:
        """Validate required class attributes at definition time."""
        super().__init_subclass__(**kwargs)

        # Skip validation for intermediate abstract classes
        if getattr(cls, "__abstractmethods__", None):
            return

        if not hasattr(cls, "name"):
            raise TypeError(f"ViewerPlugin subclass {cls.__name__} must define 'name'")
        if not isinstance(cls.name, str) or not _SAFE_NAME_RE.match(cls.name):
            raise TypeError(
                f"ViewerPlugin subclass {cls.__name__} has invalid name "
                f"{cls.name!r}: must match [a-z][a-z0-9_]*"
            )

        if not hasattr(cls, "mime_types"):
            raise TypeError(
                f"ViewerPlugin subclass {cls.__name__} must define 'mime_types'"
            )
        if not isinstance(cls.mime_types, list) or not cls.mime_types:
            raise TypeError(
                f"ViewerPlugin subclass {cls.__name__}: "
                f"mime_types must be a non-empty list"
            )
        for mt in cls.mime_types:
            if not isinstance(mt, str) or not _SAFE_MIME_RE.match(mt):
                raise TypeError(
                    f"ViewerPlugin subclass {cls.__name__} has invalid "
                    f"MIME type {mt!r}: must match type/subtype or type/*"
                )

    @abstractmethod
    def default_command(self) -> list[str]:
        """Return the argv prefix that launches this viewer."""
        ...

    def command(self) -> list[str]:
        return self._command or self.default_command()

    def launch(self, intent: "Intent", env: dict[str, str] | None = None) -> None:
        """Start the viewer on ``intent.uri`` without waiting for it.

        The grant travels in the child's environment so the viewer can
        present it when reading the URI. ``env`` adds launcher settings,
        such as the config file the viewer should load.

        Raises:
            LaunchError: If the viewer process cannot be started.
        """
        argv = [*self.command(), intent.uri]
        child_env = {**os.environ, **(env or {}), ENV_MEDIA_TYPE: intent.media_type}
        if intent.grant is not None:
            child_env.update(intent.grant.to_env())

        logger.debug("Launching viewer %s: %s", self.name, argv)
        try:
            _spawn(argv, child_env)
        except LaunchError as e:
            raise LaunchError(f"Cannot start viewer {self.name}: {e}") from e


def _spawn(argv: list[str], env: dict[str, str]) -> None:
    try:
        subprocess.Popen(
            argv,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise LaunchError(str(e)) from e
