"""Exception hierarchy shared by the domain, ports and adapters."""

from typing import Optional


class SacanaError(Exception):
    """Base class for every error raised by sacana itself."""


class ConfigError(SacanaError):
    """Raised when the runtime configuration is missing or malformed."""


class TransportError(SacanaError):
    """Socket, websocket or TLS failure. Recoverable: triggers a reconnect."""


class EventDecodeError(SacanaError):
    """An inbound payload could not be decoded into an event."""


class SlackApiError(SacanaError):
    """A Slack Web API call answered with ``ok: false``."""

    def __init__(self, method: str, error: str):
        super().__init__(f"API error: {method} failed \"{error}\"")
        self.method = method
        self.error = error


class SessionFatalError(SacanaError):
    """Unrecoverable failure while (re)establishing a session.

    The process must terminate; restarting it is the supervisor's job.
    """


class UnknownChannelError(SessionFatalError):
    def __init__(self, name: str):
        super().__init__(f"there is no channel named {name}")
        self.name = name


# ── Command-level failures (surfaced to the requester) ──────────


class CommandError(SacanaError):
    """A command could not be carried out; the message is shown to the user."""


class UnknownUserError(CommandError):
    def __init__(self, user_id: str):
        super().__init__(f"Unknown user {user_id}")
        self.user_id = user_id


class AccountActionError(CommandError):
    """Failure reported by the account action executor."""


class AccountAlreadyExists(AccountActionError):
    def __init__(self, host: str):
        super().__init__(f"Your account already exists on {host}")
        self.host = host


class AccountNotFound(AccountActionError):
    def __init__(self, host: str):
        super().__init__(f"Your account doesn't exist on {host}")
        self.host = host


class CommandFailed(AccountActionError):
    """An external command exited with a non-zero status."""

    def __init__(self, name: str, code: int):
        super().__init__(f"`{name}` failed. status code: {code}")
        self.name = name
        self.code = code


class CommandKilled(AccountActionError):
    def __init__(self, name: str):
        super().__init__(f"`{name}` is killed by signal")
        self.name = name


class PublicKeyUnavailable(AccountActionError):
    def __init__(self, uri: str, detail: Optional[str] = None):
        message = f"can't access {uri}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.uri = uri
