"""The desktop app's own WebSocket connection to its control plane."""
import asyncio
import contextlib
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from ..models import Message

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Message], Union[None, Awaitable[None]]]


class DesktopPeer:
    """WebSocket client that pushes local changes and receives remote ones."""

    def __init__(self, handler: Optional[MessageHandler] = None):
        self.handler = handler
        self._connection: Optional[Any] = None
        self._reader: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self, url: str) -> None:
        """Connect to the hub at `url`, replacing any previous connection."""
        await self.close()
        logger.debug(f"Connecting desktop peer to {url}")
        self._connection = await websockets.connect(url)
        self._reader = asyncio.create_task(self._read_loop(self._connection))

    async def send(self, message: Message) -> None:
        """Send a message; a no-op while disconnected."""
        if self._connection is None:
            logger.debug(f"Desktop peer not connected, dropping {message.type}")
            return
        try:
            await self._connection.send(message.to_json())
        except ConnectionClosed as e:
            logger.warning(f"Desktop peer connection closed while sending {message.type}: {e}")

    async def close(self) -> None:
        """Close the connection. Safe to call when not connected."""
        connection, self._connection = self._connection, None
        reader, self._reader = self._reader, None

        if connection is not None:
            await connection.close()
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await reader

    async def _read_loop(self, connection) -> None:
        try:
            async for raw in connection:
                message = Message.parse(raw)
                if message is None or self.handler is None:
                    continue
                try:
                    result = self.handler(message)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception(f"Desktop peer failed to handle {message.type}")
        except ConnectionClosed as e:
            logger.info(f"Desktop peer disconnected: {e}")
