"""Shared in-memory fakes for the chat port and the RTM stream."""

import json
from typing import Dict, List, Optional

import pytest

from sacana.domain.errors import SlackApiError, TransportError
from sacana.domain.models import ConversationKind
from sacana.domain.watermark import ts_key
from sacana.ports.inbound import ChatMessage
from sacana.ports.outbound import Frame, FrameKind, RtmEndpoint


def text_frame(payload) -> Frame:
    return Frame(FrameKind.TEXT, json.dumps(payload))


def message_frame(ts: str, text: str = "<@UBOT> ping", channel: str = "C1", user: str = "U1") -> Frame:
    return text_frame({"type": "message", "channel": channel, "user": user, "text": text, "ts": ts})


class FakeStream:
    """Hands out queued frames; an empty queue behaves like a dropped socket."""

    def __init__(self, frames: Optional[List[Frame]] = None):
        self.frames = list(frames or [])
        self.pongs: List[bytes] = []
        self.closed = False

    async def receive(self) -> Frame:
        if not self.frames:
            raise TransportError("connection reset by peer")
        return self.frames.pop(0)

    async def pong(self, data: bytes = b"") -> None:
        self.pongs.append(data)

    async def close(self) -> None:
        self.closed = True


class FakeChat:
    def __init__(self):
        self.users = [("U1", "alice"), ("U2", "bob")]
        self.channels = [("C1", "infra"), ("C2", "ops"), ("C3", "random")]
        self.history: Dict[str, List[ChatMessage]] = {}
        self.kinds: Dict[str, ConversationKind] = {"D1": ConversationKind.DIRECT}
        self.streams: List[FakeStream] = []
        self.probe_failures = 0
        self.fail_directory_after = None

        self.probes = 0
        self.posted: List[tuple] = []
        self.threaded: List[tuple] = []
        self.ephemeral: List[tuple] = []
        self.reactions: List[tuple] = []
        self.history_calls: List[tuple] = []
        self.directory_calls = 0

    async def probe(self) -> None:
        self.probes += 1
        if self.probe_failures:
            self.probe_failures -= 1
            raise TransportError("cannot connect to slack.com")

    async def rtm_connect(self) -> RtmEndpoint:
        return RtmEndpoint(url="wss://rtm.example/ws", self_id="UBOT")

    async def open_stream(self, url: str) -> FakeStream:
        if not self.streams:
            raise TransportError("no more connections")
        return self.streams.pop(0)

    async def post_message(self, channel, text):
        self.posted.append((channel, text))

    async def post_thread_message(self, channel, ts, text):
        self.threaded.append((channel, ts, text))

    async def post_ephemeral_attachments(self, channel, user, attachments):
        self.ephemeral.append((channel, user, attachments))

    async def add_reaction(self, channel, ts, name):
        self.reactions.append((channel, ts, name))

    async def list_users(self):
        self.directory_calls += 1
        if self.fail_directory_after is not None and self.directory_calls > self.fail_directory_after:
            raise SlackApiError("users.list", "ratelimited")
        return list(self.users)

    async def list_bot_channels(self):
        return list(self.channels)

    async def conversation_kind(self, channel):
        return self.kinds.get(channel, ConversationKind.PUBLIC)

    async def fetch_history(self, channel, oldest=None):
        self.history_calls.append((channel, oldest))
        return [
            m
            for m in self.history.get(channel, [])
            if oldest is None or ts_key(m.ts) > ts_key(oldest)
        ]


@pytest.fixture
def chat():
    return FakeChat()
