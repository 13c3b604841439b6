"""Directory watching for live reload.

WatchCoordinator owns the single active watchdog observer. Arming a new
directory stops and joins the previous observer before the new one starts,
and every observer is tagged with a generation number so events that were
already queued by a retired observer are dropped on arrival.
"""
import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatchSetupError

logger = logging.getLogger(__name__)

CHANGE_EVENTS = {"created", "modified", "deleted", "moved"}


def is_hidden(root: Path, path: Union[str, Path]) -> bool:
    """True if any component of path below root starts with a dot."""
    try:
        relative = Path(path).relative_to(root)
    except ValueError:
        relative = Path(path)
    return any(part.startswith(".") for part in relative.parts)


class ChangeHandler(FileSystemEventHandler):
    """Forwards file changes under one root to a dispatch callback.

    Runs on the watchdog observer thread.
    """

    def __init__(self, root: Path, generation: int,
                 dispatch: Callable[[int, str], None], ignore_dotfiles: bool = True):
        super().__init__()
        self.root = root
        self.generation = generation
        self.dispatch = dispatch
        self.ignore_dotfiles = ignore_dotfiles

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in CHANGE_EVENTS:
            return

        paths = [os.fsdecode(event.src_path)]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(os.fsdecode(dest_path))

        if self.ignore_dotfiles:
            paths = [p for p in paths if not is_hidden(self.root, p)]
            if not paths:
                return

        self.dispatch(self.generation, paths[-1])


class WatchCoordinator:
    """Keeps at most one directory watch alive and reports its changes.

    Args:
        on_change: Called on the event loop once per coalesced burst of changes
        debounce: Seconds to wait for further events before calling on_change
        ignore_dotfiles: Skip paths with a dot-prefixed component
        observer_factory: Builds watchdog observers (replaceable in tests)
    """

    def __init__(self, on_change: Callable[[], None], debounce: float = 0.1,
                 ignore_dotfiles: bool = True, observer_factory: Callable = Observer,
                 join_timeout: float = 5.0):
        self.on_change = on_change
        self.debounce = debounce
        self.ignore_dotfiles = ignore_dotfiles
        self.observer_factory = observer_factory
        self.join_timeout = join_timeout

        self._lock = asyncio.Lock()
        self._observer = None
        self._directory: Optional[Path] = None
        self._generation = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Optional[asyncio.TimerHandle] = None
        self._last_change: Optional[str] = None

    @property
    def directory(self) -> Optional[Path]:
        """Root of the active watch, or None."""
        return self._directory

    @property
    def is_armed(self) -> bool:
        return self._observer is not None

    async def arm(self, directory: Union[str, Path]) -> Path:
        """Replace any active watch with one rooted at directory.

        Calls are serialized; a second arm waits for the first to finish.
        The previous watch is stopped whether or not the new one starts.

        Returns:
            The watched directory once the observer is running.

        Raises:
            WatchSetupError: directory is unusable or the observer failed to start
        """
        path = Path(directory)
        async with self._lock:
            await self._teardown()
            if not path.is_dir():
                logger.error(f"Watcher error for {path}: not a directory")
                raise WatchSetupError(f"Not a directory: {directory}")

            self._loop = asyncio.get_running_loop()
            self._generation += 1
            handler = ChangeHandler(path, self._generation, self._dispatch_threadsafe,
                                    ignore_dotfiles=self.ignore_dotfiles)
            observer = self.observer_factory()
            try:
                observer.schedule(handler, str(path), recursive=True)
                # Returns once the OS watches are registered
                await asyncio.to_thread(observer.start)
            except Exception as e:
                logger.error(f"Watcher error for {path}: {e}")
                await self._stop_observer(observer)
                raise WatchSetupError(str(e)) from e

            self._observer = observer
            self._directory = path
            logger.info(f"Watching {path} (generation {self._generation})")
            return path

    async def close(self) -> None:
        """Stop the active watch, if any."""
        async with self._lock:
            await self._teardown()

    async def _teardown(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

        observer, self._observer = self._observer, None
        directory, self._directory = self._directory, None
        if observer is not None:
            await self._stop_observer(observer)
            logger.info(f"Stopped watching {directory}")

    async def _stop_observer(self, observer) -> None:
        try:
            observer.stop()
        except Exception as e:
            logger.warning(f"Error stopping watcher: {e}")
        if observer.is_alive():
            await asyncio.to_thread(observer.join, self.join_timeout)

    def _dispatch_threadsafe(self, generation: int, path: str) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._record_change, generation, path)
        except RuntimeError:
            # Loop shut down between the check and the call
            logger.debug(f"Dropped change for {path}: event loop closed")

    def _record_change(self, generation: int, path: str) -> None:
        if generation != self._generation or self._observer is None:
            logger.debug(f"Ignoring change from retired watcher: {path}")
            return

        logger.debug(f"Change detected: {path}")
        self._last_change = path
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._loop.call_later(self.debounce, self._flush, generation)

    def _flush(self, generation: int) -> None:
        self._pending = None
        if generation != self._generation:
            return
        logger.info(f"Reloading after change to {self._last_change}")
        self.on_change()
