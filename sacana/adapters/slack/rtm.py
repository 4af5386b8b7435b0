"""RTM websocket stream over aiohttp."""

import asyncio
import logging
from typing import Optional

import aiohttp

from sacana.domain.errors import TransportError
from sacana.ports.outbound import Frame, FrameKind

logger = logging.getLogger(__name__)

_CLOSE_TYPES = (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED)


class RtmStream:
    """One websocket connection. Pings are surfaced, not auto-answered."""

    def __init__(self, session: aiohttp.ClientSession, ws: aiohttp.ClientWebSocketResponse):
        self._session = session
        self._ws = ws

    @classmethod
    async def connect(cls, url: str, session: Optional[aiohttp.ClientSession] = None) -> "RtmStream":
        session = session or aiohttp.ClientSession()
        try:
            ws = await session.ws_connect(url, autoping=False)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await session.close()
            raise TransportError(f"websocket connect failed: {e}") from e
        return cls(session, ws)

    async def receive(self) -> Frame:
        try:
            msg = await self._ws.receive()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"websocket receive failed: {e}") from e

        if msg.type == aiohttp.WSMsgType.TEXT:
            return Frame(FrameKind.TEXT, msg.data)
        if msg.type == aiohttp.WSMsgType.PING:
            logger.debug("ping")
            return Frame(FrameKind.PING, msg.data)
        if msg.type in _CLOSE_TYPES:
            return Frame(FrameKind.CLOSE, msg.data)
        if msg.type == aiohttp.WSMsgType.ERROR:
            raise TransportError(f"websocket error: {self._ws.exception()}")
        return Frame(FrameKind.OTHER, msg.data)

    async def pong(self, data: bytes = b"") -> None:
        try:
            await self._ws.pong(data)
        except (aiohttp.ClientError, ConnectionError) as e:
            raise TransportError(f"websocket pong failed: {e}") from e

    async def close(self) -> None:
        try:
            await self._ws.close()
        finally:
            await self._session.close()
