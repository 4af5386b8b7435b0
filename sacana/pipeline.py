"""Single path from a decoded chat message to its dispatched outcome.

Live frames and catch-up replay both go through ``EventPipeline`` so they
share classification, parsing, dispatch and watermark rules.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from sacana.domain.classifier import EventClassifier
from sacana.domain.command_parser import parse_command
from sacana.domain.dispatcher import CommandDispatcher, DispatchContext
from sacana.domain.errors import EventDecodeError, SacanaError
from sacana.domain.models import DispatchOutcome, MessageRoute
from sacana.ports.inbound import ChatMessage, InboundEvent

if TYPE_CHECKING:
    from sacana.session_manager import Session

logger = logging.getLogger(__name__)

Decoder = Callable[[str], InboundEvent]


class EventPipeline:
    def __init__(
        self,
        decoder: Decoder,
        classifier: EventClassifier,
        dispatcher: CommandDispatcher,
    ):
        self._decode = decoder
        self.classifier = classifier
        self.dispatcher = dispatcher

    def decode(self, raw: str) -> Optional[InboundEvent]:
        """Decode one text frame. Malformed payloads are logged and dropped."""
        logger.debug("recv: %s", raw)
        try:
            return self._decode(raw)
        except EventDecodeError as e:
            logger.warning("skipping undecodable event: %s", e)
            return None

    async def handle_message(
        self, message: ChatMessage, session: "Session", replay: bool = False
    ) -> Optional[DispatchOutcome]:
        """Classify, parse and dispatch one message, then advance the watermark.

        Live messages are always processed, whatever their timestamp, except
        the ones already handled by catch-up replay. The watermark only moves
        forward. A failure anywhere in the chain is logged and leaves the
        watermark where it was.
        """
        key = (message.channel, message.ts)
        if replay:
            session.replayed.add(key)
        elif key in session.replayed:
            logger.info("%s in %s was already replayed, skipping", message.ts, message.channel)
            return None

        try:
            outcome = await self._process(message, session)
        except SacanaError as e:
            logger.error("failed to handle message %s in %s: %s", message.ts, message.channel, e)
            return None
        except Exception:
            logger.exception("unexpected error handling message %s in %s", message.ts, message.channel)
            return None

        if not session.watermark.advance(message.ts):
            logger.debug(
                "late message %s in %s, watermark stays at %s",
                message.ts,
                message.channel,
                session.watermark.value,
            )
        return outcome

    async def _process(self, message: ChatMessage, session: "Session") -> Optional[DispatchOutcome]:
        route = await self.classifier.route(
            message, session.self_id, session.monitored, session.directory
        )
        if route is MessageRoute.IGNORED:
            return None

        is_direct = route is MessageRoute.DIRECT
        command = parse_command(message.text, is_direct, session.self_id)
        context = DispatchContext(
            user_id=message.author,
            channel=message.channel,
            ts=message.ts,
            is_direct=is_direct,
            bot_id=session.self_id,
            monitored=tuple(session.monitored),
            directory=session.directory,
        )
        return await self.dispatcher.handle(command, context)
