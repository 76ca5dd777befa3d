"""
WebSocket stream to the Meower server.

Opened with the token from login; yields raw text frames until the server
closes the connection. Reconnecting is left to the caller.
"""

from typing import AsyncIterator

import aiohttp
from loguru import logger


class MeowerStream:
    """A single persistent connection to the Meower event stream."""

    def __init__(
        self,
        url: str,
        token: str,
        session: aiohttp.ClientSession | None = None,
        heartbeat: float | None = 30.0,
    ):
        """
        Initialize the stream.

        Args:
            url: Base WebSocket URL (e.g. wss://server.meower.org).
            token: Token issued by MeowerAPI.authenticate().
            session: Optional aiohttp session to reuse.
            heartbeat: Ping interval in seconds, None to disable.
        """
        self.url = url
        self._token = token
        self._session = session
        self._owns_session = session is None
        self._heartbeat = heartbeat
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self.close_code: int | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self) -> None:
        """Open the WebSocket connection."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

        self._ws = await self._session.ws_connect(
            self.url,
            params={"v": "1", "token": self._token},
            heartbeat=self._heartbeat,
        )
        logger.debug(f"Stream connected to {self.url}")

    async def frames(self) -> AsyncIterator[str]:
        """Yield text frames until the connection closes."""
        if not self._ws:
            return

        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                yield msg.data

            elif msg.type == aiohttp.WSMsgType.BINARY:
                yield msg.data.decode("utf-8", errors="replace")

            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error(f"Stream error: {self._ws.exception()}")
                break

        self.close_code = self._ws.close_code

    async def close(self) -> None:
        """Close the connection and the owned HTTP session."""
        if self._ws and not self._ws.closed:
            await self._ws.close()

        if self._session and self._owns_session:
            await self._session.close()
            self._session = None
