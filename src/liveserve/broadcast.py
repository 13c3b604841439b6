"""Live-reload notification fan-out."""
import asyncio
import logging
from typing import Optional, Protocol, Set

from fastapi import WebSocket

from .errors import ChannelDeliveryError

logger = logging.getLogger(__name__)

RELOAD_TOKEN = "reload"


class ClientChannel(Protocol):
    """One connected live-reload listener."""

    async def send(self, message: str) -> None:
        ...


class WebSocketChannel:
    """ClientChannel backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def send(self, message: str) -> None:
        await self.websocket.send_text(message)

    def __repr__(self) -> str:
        client = self.websocket.client
        return f"WebSocketChannel({client.host}:{client.port})" if client else "WebSocketChannel()"


class BroadcastHub:
    """Registry of open channels with fire-and-forget broadcast.

    Channels remove themselves through unregister() when their connection
    closes; a failed send never unregisters anything.
    """

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        self._channels: Set[ClientChannel] = set()
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

    async def register(self, channel: ClientChannel) -> None:
        async with self._lock:
            self._channels.add(channel)
            count = len(self._channels)
        logger.info(f"Channel connected: {channel!r} ({count} open)")

    async def unregister(self, channel: ClientChannel) -> None:
        """Drop a channel. Unknown channels are ignored."""
        async with self._lock:
            if channel not in self._channels:
                return
            self._channels.discard(channel)
            count = len(self._channels)
        logger.info(f"Channel closed: {channel!r} ({count} open)")

    async def count(self) -> int:
        async with self._lock:
            return len(self._channels)

    async def _deliver(self, channel: ClientChannel, message: str) -> None:
        try:
            await asyncio.wait_for(channel.send(message), timeout=self.send_timeout)
        except Exception as e:
            raise ChannelDeliveryError(f"Delivery to {channel!r} failed: {e}") from e

    async def notify_all(self, message: str = RELOAD_TOKEN) -> int:
        """Send a message to every open channel.

        Returns:
            Number of channels that accepted the message. Failures are
            logged and absorbed.
        """
        async with self._lock:
            targets = list(self._channels)

        if not targets:
            logger.debug("No channels to notify")
            return 0

        results = await asyncio.gather(
            *(self._deliver(channel, message) for channel in targets),
            return_exceptions=True
        )

        delivered = 0
        for result in results:
            if isinstance(result, BaseException):
                logger.warning(str(result))
            else:
                delivered += 1
        logger.info(f"Sent '{message}' to {delivered}/{len(targets)} channels")
        return delivered

    def schedule_notify_all(self, message: str = RELOAD_TOKEN) -> Optional[asyncio.Task]:
        """Start a broadcast without waiting for it. Must run on the event loop."""
        task = asyncio.get_running_loop().create_task(self.notify_all(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def close(self) -> None:
        """Cancel in-flight broadcasts."""
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()
