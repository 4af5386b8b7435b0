"""Slack Web API client using aiohttp."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp
from pydantic import ValidationError

from sacana.adapters.slack.payloads import ChannelRef, ConversationInfo, Member, decode_history_message
from sacana.adapters.slack.rtm import RtmStream
from sacana.domain.errors import EventDecodeError, SlackApiError, TransportError
from sacana.domain.models import ConversationKind
from sacana.ports.inbound import ChatMessage
from sacana.ports.outbound import RtmEndpoint

logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api"
PAGE_SIZE = 200
REQUEST_TIMEOUT = 30


class SlackClient:
    """Async Slack Web API client.

    Read methods go out as GET with query parameters, write methods as POST
    with a JSON body. Any ``ok: false`` answer raises ``SlackApiError``.
    """

    def __init__(self, token: str, base_url: str = SLACK_API_BASE):
        self._token = token
        self.base_url = base_url.rstrip("/")

    async def call(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/{method}"
        headers = {"Authorization": f"Bearer {self._token}"}
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                if body is not None:
                    request = session.post(url, headers=headers, json=body)
                else:
                    request = session.get(url, headers=headers, params=params)
                async with request as resp:
                    data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransportError(f"{method}: {e}") from e

        if not data.get("ok"):
            raise SlackApiError(method, data.get("error", "unknown_error"))
        return data

    async def _paginate(self, method: str, key: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        cursor = None
        while True:
            page_params = dict(params, limit=str(PAGE_SIZE))
            if cursor:
                page_params["cursor"] = cursor
            data = await self.call(method, params=page_params)
            items.extend(data.get(key, []))
            cursor = (data.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return items

    # ── Session ─────────────────────────────────────────────────

    async def probe(self) -> None:
        await self.call("auth.test")

    async def rtm_connect(self) -> RtmEndpoint:
        data = await self.call("rtm.connect")
        try:
            return RtmEndpoint(url=data["url"], self_id=data["self"]["id"])
        except (KeyError, TypeError) as e:
            raise SlackApiError("rtm.connect", f"unexpected response ({e})") from e

    async def open_stream(self, url: str) -> RtmStream:
        return await RtmStream.connect(url)

    # ── Posting ─────────────────────────────────────────────────

    async def post_message(self, channel: str, text: str) -> None:
        await self.call("chat.postMessage", body={"channel": channel, "text": text})

    async def post_thread_message(self, channel: str, ts: str, text: str) -> None:
        await self.call(
            "chat.postMessage", body={"channel": channel, "text": text, "thread_ts": ts}
        )

    async def post_ephemeral_attachments(
        self, channel: str, user: str, attachments: Sequence[Dict[str, Any]]
    ) -> None:
        await self.call(
            "chat.postEphemeral",
            body={"channel": channel, "user": user, "attachments": list(attachments)},
        )

    async def add_reaction(self, channel: str, ts: str, name: str) -> None:
        await self.call("reactions.add", body={"channel": channel, "timestamp": ts, "name": name})

    # ── Directory ───────────────────────────────────────────────

    async def list_users(self) -> List[Tuple[str, str]]:
        members = await self._paginate("users.list", "members", {})
        try:
            return [
                (m.id, m.profile.display_name_normalized)
                for m in (Member.model_validate(raw) for raw in members)
            ]
        except ValidationError as e:
            raise SlackApiError("users.list", f"malformed member ({e.error_count()} errors)") from e

    async def list_bot_channels(self) -> List[Tuple[str, str]]:
        channels = await self._paginate(
            "users.conversations",
            "channels",
            {"types": "public_channel", "exclude_archived": "true"},
        )
        try:
            return [(c.id, c.name) for c in (ChannelRef.model_validate(raw) for raw in channels)]
        except ValidationError as e:
            raise SlackApiError(
                "users.conversations", f"malformed channel ({e.error_count()} errors)"
            ) from e

    async def conversation_kind(self, channel: str) -> ConversationKind:
        data = await self.call("conversations.info", params={"channel": channel})
        try:
            return ConversationInfo.model_validate(data.get("channel")).kind
        except ValidationError as e:
            raise SlackApiError("conversations.info", f"malformed channel {channel}") from e

    # ── History ─────────────────────────────────────────────────

    async def fetch_history(self, channel: str, oldest: Optional[str] = None) -> List[ChatMessage]:
        """Messages strictly newer than ``oldest``, newest first, across all pages.

        Entries that are not plain user messages (joins, bot posts without
        a user) are skipped.
        """
        params: Dict[str, Any] = {"channel": channel, "limit": str(PAGE_SIZE)}
        if oldest is not None:
            params["oldest"] = oldest

        messages: List[ChatMessage] = []
        while True:
            data = await self.call("conversations.history", params=params)
            for entry in data.get("messages", []):
                try:
                    messages.append(decode_history_message(entry, channel))
                except EventDecodeError as e:
                    logger.debug("skipping history entry in %s: %s", channel, e)
            cursor = (data.get("response_metadata") or {}).get("next_cursor")
            if not data.get("has_more") or not cursor:
                return messages
            params = dict(params, cursor=cursor)
