"""Port interfaces (Hexagonal Architecture)."""

from sacana.ports.inbound import (
    ChatMessage,
    ConnectionGoodbye,
    ConnectionHello,
    DirectoryUserChanged,
    DirectoryUserJoined,
    Ignorable,
    InboundEvent,
)
from sacana.ports.outbound import AccountPort, ChatPort, Frame, FrameKind, RtmEndpoint, RtmStreamPort

__all__ = [
    "ChatMessage",
    "ConnectionGoodbye",
    "ConnectionHello",
    "DirectoryUserChanged",
    "DirectoryUserJoined",
    "Ignorable",
    "InboundEvent",
    "AccountPort",
    "ChatPort",
    "Frame",
    "FrameKind",
    "RtmEndpoint",
    "RtmStreamPort",
]
