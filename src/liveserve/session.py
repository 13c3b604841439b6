"""Served-project session state."""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError
from .watcher import WatchCoordinator

logger = logging.getLogger(__name__)


class ConsoleOverlay(str, Enum):
    """In-page developer console injected into the served page."""
    NONE = "none"
    ERUDA = "eruda"
    SUGER = "suger"

    @classmethod
    def select(cls, enabled: bool, console_type: Optional[str] = None) -> "ConsoleOverlay":
        """Pick the overlay for a setup request.

        The full eruda console is used only when asked for by name; any other
        console type gets the lightweight one.
        """
        if not enabled:
            return cls.NONE
        # Omitted means lightweight; nothing carries over from an earlier setup
        if console_type == cls.ERUDA.value:
            return cls.ERUDA
        return cls.SUGER


@dataclass(frozen=True)
class SessionSettings:
    """One accepted configuration: what to serve and which overlays to add."""
    directory: Path
    entry_file: str
    console_overlay: ConsoleOverlay = ConsoleOverlay.NONE
    zoom_enabled: bool = False

    @property
    def entry_path(self) -> Path:
        return self.directory / self.entry_file


def validate_settings(path: Optional[str], file_name: Optional[str],
                      eruda: Optional[bool] = None, console_type: Optional[str] = None,
                      zoom: Optional[bool] = None) -> SessionSettings:
    """Build SessionSettings from raw setup fields.

    Raises:
        ConfigurationError: a required field is missing or path is not a directory
    """
    if not path or not file_name:
        raise ConfigurationError("Missing fields")

    directory = Path(path).expanduser()
    if not directory.is_dir():
        raise ConfigurationError(f"Not a directory: {path}")

    return SessionSettings(
        directory=directory.resolve(),
        entry_file=file_name,
        console_overlay=ConsoleOverlay.select(eruda is True, console_type),
        zoom_enabled=zoom is True,
    )


class ServerSession:
    """Process-wide session: current settings plus the watch they drive.

    configure() is the only way settings change.
    """

    def __init__(self, coordinator: WatchCoordinator, port: Optional[int] = None):
        self.coordinator = coordinator
        self.active_port = port
        self.settings: Optional[SessionSettings] = None
        self._lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return self.settings is not None

    async def configure(self, settings: SessionSettings) -> SessionSettings:
        """Adopt new settings and re-arm the watcher on their directory.

        Returns once the watcher is running.

        Raises:
            WatchSetupError: the watcher failed to start; settings stay adopted
                so pages are still served, without live reload
        """
        async with self._lock:
            self.settings = settings
            logger.info(f"Base set to: {settings.directory} (entry: {settings.entry_file}, "
                        f"console: {settings.console_overlay.value}, zoom: {settings.zoom_enabled})")
            await self.coordinator.arm(settings.directory)
            return settings
