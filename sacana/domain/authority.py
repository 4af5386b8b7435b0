"""Per-process authority decision for a parsed command.

Every host runs its own sacana process in the same channels. Exactly one of
them may act on a host-scoped command, and exactly one (the designated
responder) answers help and error notices.
"""

from enum import Enum
from typing import Sequence

from sacana.domain.models import Create, Help, Invalid, Join, ParsedCommand, Ping, Update


class Authority(Enum):
    ACT = "act"
    RESPOND = "respond"
    SILENT = "silent"


class AuthorityGate:
    def __init__(self, local_host: str, hosts: Sequence[str]):
        self.local_host = local_host
        self.hosts = list(hosts)

    @property
    def is_responder(self) -> bool:
        """True when the first entry of the host list is this host."""
        return bool(self.hosts) and self.hosts[0] == self.local_host

    def knows(self, host: str) -> bool:
        return host in self.hosts

    def decide(self, command: ParsedCommand) -> Authority:
        if isinstance(command, Ping):
            return Authority.ACT

        if isinstance(command, (Help, Invalid)):
            return Authority.RESPOND if self.is_responder else Authority.SILENT

        if isinstance(command, (Create, Update, Join)):
            if command.host == self.local_host:
                return Authority.ACT
            if not self.knows(command.host) and self.is_responder:
                return Authority.RESPOND
            return Authority.SILENT

        raise TypeError(f"unexpected command {command!r}")
