"""Outbound ports: interfaces for external system adapters."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from sacana.domain.models import ConversationKind
from sacana.ports.inbound import ChatMessage


@dataclass(frozen=True)
class RtmEndpoint:
    """Result of ``rtm.connect``."""

    url: str
    self_id: str


class FrameKind(Enum):
    TEXT = "text"
    PING = "ping"
    CLOSE = "close"
    OTHER = "other"


@dataclass(frozen=True)
class Frame:
    kind: FrameKind
    data: Any = None


@runtime_checkable
class RtmStreamPort(Protocol):
    """A single live websocket session."""

    async def receive(self) -> Frame: ...
    async def pong(self, data: bytes = b"") -> None: ...
    async def close(self) -> None: ...


@runtime_checkable
class ChatPort(Protocol):
    """Interface for the chat platform's REST transport."""

    async def probe(self) -> None: ...
    async def rtm_connect(self) -> RtmEndpoint: ...
    async def open_stream(self, url: str) -> RtmStreamPort: ...

    async def post_message(self, channel: str, text: str) -> None: ...
    async def post_thread_message(self, channel: str, ts: str, text: str) -> None: ...
    async def post_ephemeral_attachments(
        self, channel: str, user: str, attachments: Sequence[Dict[str, Any]]
    ) -> None: ...
    async def add_reaction(self, channel: str, ts: str, name: str) -> None: ...

    async def list_users(self) -> List[Tuple[str, str]]: ...
    async def list_bot_channels(self) -> List[Tuple[str, str]]: ...
    async def conversation_kind(self, channel: str) -> ConversationKind: ...
    async def fetch_history(
        self, channel: str, oldest: Optional[str] = None
    ) -> List[ChatMessage]: ...


@runtime_checkable
class AccountPort(Protocol):
    """Interface for host account management.

    Every method returns on success and raises an ``AccountActionError``
    subclass on failure.
    """

    async def account_exists(self, user: str) -> bool: ...

    async def create_account(
        self,
        user: str,
        local_host: str,
        key_uri_template: str,
        uid: Optional[int] = None,
        gid: Optional[int] = None,
    ) -> None: ...

    async def refresh_authorized_keys(
        self, user: str, local_host: str, key_uri_template: str
    ) -> None: ...

    async def join_group(self, user: str, group: str, local_host: str) -> None: ...
