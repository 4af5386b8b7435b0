"""Domain layer: pure Python, no framework dependencies."""

from sacana.domain.models import (
    ConversationKind,
    Create,
    DispatchOutcome,
    Help,
    Invalid,
    Join,
    MessageRoute,
    ParsedCommand,
    Ping,
    Reaction,
    Update,
)
from sacana.domain.command_parser import parse_command
from sacana.domain.watermark import Watermark
from sacana.domain.directory import DirectoryCache
from sacana.domain.authority import Authority, AuthorityGate

__all__ = [
    "ConversationKind",
    "Create",
    "DispatchOutcome",
    "Help",
    "Invalid",
    "Join",
    "MessageRoute",
    "ParsedCommand",
    "Ping",
    "Reaction",
    "Update",
    "parse_command",
    "Watermark",
    "DirectoryCache",
    "Authority",
    "AuthorityGate",
]
