"""RTM session lifecycle: connect → listen → reconnect → reconcile → listen.

Only transport failures end a listen loop. Only reconnection-phase
failures (unreachable platform, directory refresh, history fetch) end the
process, as ``SessionFatalError``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Set, Tuple

from sacana.domain.directory import DirectoryCache
from sacana.domain.errors import SacanaError, SessionFatalError, TransportError
from sacana.domain.watermark import Watermark, ts_key
from sacana.pipeline import EventPipeline
from sacana.ports.inbound import (
    ChatMessage,
    ConnectionGoodbye,
    ConnectionHello,
    DirectoryEvent,
    InboundEvent,
)
from sacana.ports.outbound import ChatPort, FrameKind, RtmStreamPort

logger = logging.getLogger(__name__)

PROBE_ATTEMPTS = 5
PROBE_INTERVAL = 10.0


class DisconnectReason(Enum):
    GOODBYE = "goodbye"
    CLOSED = "closed"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class Session:
    """One live RTM connection and the state rebuilt for it.

    ``replayed`` holds the (channel, ts) pairs handled during catch-up, so
    the live copy of a message buffered while reconnecting is not run twice.
    """

    stream: RtmStreamPort
    self_id: str
    watermark: Watermark = field(default_factory=Watermark)
    directory: DirectoryCache = field(default_factory=DirectoryCache)
    monitored: List[str] = field(default_factory=list)
    replayed: Set[Tuple[str, str]] = field(default_factory=set)

    async def close(self) -> None:
        try:
            await self.stream.close()
        except TransportError as e:
            logger.debug("error while closing stream: %s", e)


class SessionManager:
    def __init__(
        self,
        chat: ChatPort,
        pipeline: EventPipeline,
        channel_names: Sequence[str],
        local_host: str,
        is_responder: bool = False,
        probe_attempts: int = PROBE_ATTEMPTS,
        probe_interval: float = PROBE_INTERVAL,
    ):
        self._chat = chat
        self.pipeline = pipeline
        self.channel_names = list(channel_names)
        self.local_host = local_host
        self.is_responder = is_responder
        self.probe_attempts = probe_attempts
        self.probe_interval = probe_interval

    # ── Connect ─────────────────────────────────────────────────

    async def connect(self, watermark: Optional[Watermark] = None) -> Session:
        """Open a new session and take a fresh directory snapshot."""
        session = await self._open(watermark)
        await self.refresh_directory(session)
        return session

    async def _open(self, watermark: Optional[Watermark] = None) -> Session:
        await self._probe()
        try:
            endpoint = await self._chat.rtm_connect()
            stream = await self._chat.open_stream(endpoint.url)
        except SacanaError as e:
            raise SessionFatalError(f"failed to open RTM session: {e}") from e

        logger.info("connected to RTM as %s", endpoint.self_id)
        carried = Watermark(watermark.value) if watermark is not None else Watermark()
        return Session(
            stream=stream,
            self_id=endpoint.self_id,
            watermark=carried,
        )

    async def _probe(self) -> None:
        for attempt in range(1, self.probe_attempts + 1):
            try:
                await self._chat.probe()
                return
            except SacanaError as e:
                logger.warning(
                    "Slack unreachable (attempt %d/%d): %s", attempt, self.probe_attempts, e
                )
            if attempt < self.probe_attempts:
                await asyncio.sleep(self.probe_interval)
        raise SessionFatalError(f"Slack unreachable after {self.probe_attempts} attempts")

    async def refresh_directory(self, session: Session) -> None:
        """Replace the session's directory snapshot and re-resolve monitored channels."""
        try:
            users = await self._chat.list_users()
            channels = await self._chat.list_bot_channels()
        except SacanaError as e:
            raise SessionFatalError(f"directory refresh failed: {e}") from e

        directory = DirectoryCache.from_listings(users, channels)
        monitored = directory.resolve_channels(self.channel_names)
        session.directory = directory
        session.monitored = monitored
        logger.info(
            "directory refreshed: %d users, %d channels", directory.user_count, directory.channel_count
        )

    async def report_startup(self, session: Session) -> None:
        for channel in session.monitored:
            try:
                await self._chat.post_message(channel, f"Hello, this is sacana@{self.local_host}.")
            except SacanaError as e:
                raise SessionFatalError(f"startup report failed: {e}") from e

    # ── Listen ──────────────────────────────────────────────────

    async def listen(self, session: Session) -> DisconnectReason:
        """Process frames one at a time until the connection ends."""
        logger.info("polling started")
        while True:
            try:
                frame = await session.stream.receive()
                if frame.kind is FrameKind.PING:
                    await session.stream.pong(frame.data or b"")
                    continue
            except TransportError as e:
                logger.warning("RTM transport error: %s", e)
                return DisconnectReason.TRANSPORT_ERROR

            if frame.kind is FrameKind.CLOSE:
                logger.info("RTM connection closed by peer")
                return DisconnectReason.CLOSED
            if frame.kind is not FrameKind.TEXT:
                logger.debug("ignoring %s frame", frame.kind.value)
                continue

            event = self.pipeline.decode(frame.data)
            if event is None:
                continue
            if isinstance(event, ConnectionGoodbye):
                logger.info("goodbye event received")
                return DisconnectReason.GOODBYE
            await self.handle_event(event, session)

    async def handle_event(self, event: InboundEvent, session: Session) -> None:
        if isinstance(event, ChatMessage):
            await self.pipeline.handle_message(event, session)
        elif isinstance(event, DirectoryEvent):
            session.directory.upsert_user(event.user_id, event.name)
            logger.debug("directory: %s is now %s", event.user_id, event.name)
        elif isinstance(event, ConnectionHello):
            logger.info("hello event received")
        else:
            logger.debug("ignored event %r", event)

    # ── Reconcile ───────────────────────────────────────────────

    async def reconcile(self, session: Session) -> int:
        """Rebuild the directory, then replay what was missed while disconnected.

        Every page of every monitored channel is fetched before any message
        is replayed. Returns the number of messages replayed.
        """
        await self.refresh_directory(session)

        oldest = session.watermark.value
        missed: List[ChatMessage] = []
        for channel in session.monitored:
            try:
                history = await self._chat.fetch_history(channel, oldest)
            except SacanaError as e:
                raise SessionFatalError(f"history fetch for {channel} failed: {e}") from e
            missed.extend(reversed(history))

        missed.sort(key=lambda m: ts_key(m.ts))
        logger.info("replaying %d missed messages since %s", len(missed), oldest)
        for message in missed:
            await self.pipeline.handle_message(message, session, replay=True)
        return len(missed)

    # ── Run ─────────────────────────────────────────────────────

    async def run(self) -> None:
        """Serve until a fatal error. Never returns normally."""
        session = await self.connect()
        await self.report_startup(session)
        while True:
            reason = await self.listen(session)
            logger.warning("disconnected (%s), trying to reconnect", reason.value)
            await session.close()
            session = await self._open(session.watermark)
            await self.reconcile(session)
