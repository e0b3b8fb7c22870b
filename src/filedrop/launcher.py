"""Hand-off of resolved references to external viewers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .errors import LaunchError
from .sharing import ReadGrant
from .viewers import ViewerPlugin, resolve_viewer

logger = logging.getLogger(__name__)

ACTION_VIEW = "view"


@dataclass(frozen=True)
class Intent:
    """A request to present ``uri`` to the consumer named by ``grant``."""

    uri: str
    media_type: str
    grant: ReadGrant | None = None
    action: str = ACTION_VIEW


class Launcher(ABC):
    """Platform capability that presents a reference to an external viewer."""

    @abstractmethod
    def choose(self, media_type: str) -> str:
        """Pick the consumer that will receive ``media_type``.

        Raises:
            LaunchError: If no consumer accepts the media type.
        """
        ...

    @abstractmethod
    def launch(self, consumer: str, intent: Intent) -> None:
        """Dispatch ``intent`` to ``consumer``.

        Raises:
            LaunchError: If the consumer does not accept the hand-off.
        """
        ...


class ViewerLauncher(Launcher):
    """Launcher backed by the viewer plugin registry.

    ``env`` is added to every viewer process's environment.
    """

    def __init__(
        self, viewers: list[ViewerPlugin], env: dict[str, str] | None = None
    ) -> None:
        self.viewers = {v.name: v for v in viewers}
        self.env = dict(env or {})

    def choose(self, media_type: str) -> str:
        viewer = resolve_viewer(media_type, list(self.viewers.values()))
        if viewer is None:
            raise LaunchError(f"No viewer available for {media_type}")
        return viewer.name

    def launch(self, consumer: str, intent: Intent) -> None:
        viewer = self.viewers.get(consumer)
        if viewer is None:
            raise LaunchError(f"Unknown viewer: {consumer}")
        viewer.launch(intent, self.env)
        logger.info("Opened %s with %s", intent.uri, consumer)
