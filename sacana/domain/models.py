"""Domain data models: pure Python dataclasses."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class ConversationKind(Enum):
    PUBLIC = "public_channel"
    PRIVATE = "private_channel"
    DIRECT = "im"
    GROUP_DIRECT = "mpim"


class MessageRoute(Enum):
    """How a chat message is addressed to the bot."""

    DIRECT = "direct"  # direct message to the bot
    CHANNEL = "channel"  # monitored channel, text starts with the bot mention
    IGNORED = "ignored"


class Reaction(str, Enum):
    """Emoji names used to annotate the originating message."""

    SUCCESS = "o"
    FAILURE = "x"
    ACKNOWLEDGED = "ballot_box_with_check"
    MISDIRECTED = "exclamation"


# ── Parsed commands ─────────────────────────────────────────────


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Ping:
    pass


@dataclass(frozen=True)
class Create:
    host: str


@dataclass(frozen=True)
class Update:
    host: str


@dataclass(frozen=True)
class Join:
    group: str
    host: str


@dataclass(frozen=True)
class Invalid:
    tokens: Tuple[str, ...] = ()


ParsedCommand = Union[Help, Ping, Create, Update, Join, Invalid]
HostCommand = Union[Create, Update, Join]


# ── Dispatch ────────────────────────────────────────────────────


@dataclass
class DispatchOutcome:
    """Result of one dispatch, paired with the annotation to apply."""

    ok: bool
    text: Optional[str] = None
    reaction: Optional[Reaction] = None
    show_help: bool = False
    visible: bool = True
    threaded: bool = False
