"""Inbound port: platform-agnostic event representation.

Adapters decode raw frames into exactly one of these variants; everything
downstream of the decoder matches on this closed set.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ChatMessage:
    channel: str
    author: str
    text: str
    ts: str


@dataclass(frozen=True)
class ConnectionHello:
    pass


@dataclass(frozen=True)
class ConnectionGoodbye:
    pass


@dataclass(frozen=True)
class DirectoryUserChanged:
    user_id: str
    name: str


@dataclass(frozen=True)
class DirectoryUserJoined:
    user_id: str
    name: str


@dataclass(frozen=True)
class Ignorable:
    kind: str = ""


InboundEvent = Union[
    ChatMessage,
    ConnectionHello,
    ConnectionGoodbye,
    DirectoryUserChanged,
    DirectoryUserJoined,
    Ignorable,
]

DirectoryEvent = (DirectoryUserChanged, DirectoryUserJoined)
