"""Decide whether a chat message is addressed to the bot."""

import logging
from typing import Collection

from sacana.domain.command_parser import mention
from sacana.domain.directory import DirectoryCache
from sacana.domain.models import ConversationKind, MessageRoute
from sacana.ports.inbound import ChatMessage
from sacana.ports.outbound import ChatPort

logger = logging.getLogger(__name__)


class EventClassifier:
    """Routes decoded ChatMessages to DIRECT, CHANNEL or IGNORED.

    Conversation kinds are looked up through the chat port once per
    directory snapshot and memoized there.
    """

    def __init__(self, chat: ChatPort):
        self._chat = chat

    async def route(
        self,
        message: ChatMessage,
        bot_id: str,
        monitored: Collection[str],
        directory: DirectoryCache,
    ) -> MessageRoute:
        if message.author == bot_id:
            return MessageRoute.IGNORED

        if message.channel in monitored:
            if message.text.startswith(mention(bot_id)):
                return MessageRoute.CHANNEL
            return MessageRoute.IGNORED

        kind = await self._conversation_kind(message.channel, directory)
        if kind is ConversationKind.DIRECT:
            return MessageRoute.DIRECT
        return MessageRoute.IGNORED

    async def _conversation_kind(
        self, channel: str, directory: DirectoryCache
    ) -> ConversationKind:
        kind = directory.cached_kind(channel)
        if kind is None:
            kind = await self._chat.conversation_kind(channel)
            logger.debug("conversation %s is %s", channel, kind.value)
            directory.remember_kind(channel, kind)
        return kind
