"""Server-wide state shared by the routers."""
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from fastapi import Request
from watchdog.observers import Observer

from ..broadcast import BroadcastHub
from ..config import Config
from ..render import PageRenderer
from ..session import ServerSession
from ..watcher import WatchCoordinator

PACKAGED_ASSETS = Path(__file__).resolve().parent.parent / "static"
SERVER_KEY = "AcodeLiveServer_NodeJS"


@dataclass
class LiveState:
    """Everything one running server owns."""
    config: Config
    hub: BroadcastHub
    coordinator: WatchCoordinator
    session: ServerSession
    renderer: PageRenderer
    assets_dir: Path


def build_state(config: Config, port: Optional[int] = None,
                observer_factory: Callable = Observer) -> LiveState:
    """Wire hub, watcher and session together for one server."""
    hub = BroadcastHub()
    coordinator = WatchCoordinator(
        on_change=hub.schedule_notify_all,
        debounce=config.watch.debounce_ms / 1000,
        ignore_dotfiles=config.watch.ignore_dotfiles,
        observer_factory=observer_factory,
    )
    assets_dir = Path(config.overlays.assets_dir).expanduser() if config.overlays.assets_dir else PACKAGED_ASSETS
    return LiveState(
        config=config,
        hub=hub,
        coordinator=coordinator,
        session=ServerSession(coordinator, port=port if port is not None else config.server.port),
        renderer=PageRenderer(),
        assets_dir=assets_dir,
    )


def get_live_state(request: Request) -> LiveState:
    """FastAPI dependency returning the app's LiveState."""
    return request.app.state.live
