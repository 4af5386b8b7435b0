"""Command text parsing.

Pure Python, no framework dependencies.
"""

from typing import List

from sacana.domain.models import Create, Help, Invalid, Join, ParsedCommand, Ping, Update


def mention(user_id: str) -> str:
    """Slack mention markup for ``user_id``."""
    return f"<@{user_id}>"


def command_tokens(text: str, is_direct: bool, bot_id: str) -> List[str]:
    """Split ``text`` on whitespace, dropping the leading bot mention.

    Channel messages always lead with the mention. Direct messages may or
    may not carry one.
    """
    tokens = text.split()
    if tokens and (not is_direct or text.startswith(mention(bot_id))):
        tokens = tokens[1:]
    return tokens


def parse_command(text: str, is_direct: bool, bot_id: str) -> ParsedCommand:
    """Parse a command-bearing message. Total: unknown input yields ``Invalid``."""
    tokens = command_tokens(text, is_direct, bot_id)

    if tokens == ["help"] and is_direct:
        return Help()
    if tokens == ["ping"]:
        return Ping()
    if len(tokens) == 2 and tokens[0] == "create":
        return Create(host=tokens[1])
    if len(tokens) == 2 and tokens[0] == "update":
        return Update(host=tokens[1])
    if len(tokens) == 3 and tokens[0] == "join":
        return Join(group=tokens[1], host=tokens[2])
    return Invalid(tokens=tuple(tokens))
