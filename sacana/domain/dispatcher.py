"""Command dispatch. Turns a parsed command into side effects and a reply.

Dispatch is two steps. ``dispatch`` consults the authority gate, runs the
account action when this process owns the host, and returns a
``DispatchOutcome``. ``deliver`` posts that outcome through the chat port.
"""

import logging
from dataclasses import dataclass, field
from typing import Tuple

from sacana.domain.authority import Authority, AuthorityGate
from sacana.domain.command_parser import mention
from sacana.domain.directory import DirectoryCache
from sacana.domain.errors import CommandError, UnknownUserError
from sacana.domain.help_message import build_help_attachments
from sacana.domain.models import (
    Create,
    DispatchOutcome,
    Help,
    HostCommand,
    Invalid,
    Join,
    ParsedCommand,
    Ping,
    Reaction,
    Update,
)
from sacana.ports.outbound import AccountPort, ChatPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchContext:
    """Where a command came from, plus the session it arrived on."""

    user_id: str
    channel: str
    ts: str
    is_direct: bool
    bot_id: str = ""
    monitored: Tuple[str, ...] = ()
    directory: DirectoryCache = field(default_factory=DirectoryCache, compare=False)


class CommandDispatcher:
    def __init__(
        self,
        chat: ChatPort,
        accounts: AccountPort,
        gate: AuthorityGate,
        key_uri_template: str,
    ):
        self._chat = chat
        self._accounts = accounts
        self.gate = gate
        self.key_uri_template = key_uri_template

    @property
    def local_host(self) -> str:
        return self.gate.local_host

    async def handle(self, command: ParsedCommand, context: DispatchContext) -> DispatchOutcome:
        outcome = await self.dispatch(command, context)
        await self.deliver(outcome, context)
        return outcome

    # ── Decision ────────────────────────────────────────────────

    async def dispatch(self, command: ParsedCommand, context: DispatchContext) -> DispatchOutcome:
        authority = self.gate.decide(command)
        logger.debug("%r from %s: %s", command, context.user_id, authority.value)

        if isinstance(command, Ping):
            return DispatchOutcome(ok=True, text=f"pong@{self.local_host}", threaded=True)

        if isinstance(command, Help):
            outcome = DispatchOutcome(ok=True, show_help=True, reaction=Reaction.ACKNOWLEDGED)
            return self._gated(outcome, authority)

        if isinstance(command, Invalid):
            return self._gated(self._invalid(command, context), authority)

        if isinstance(command, (Create, Update, Join)):
            if authority is Authority.ACT:
                return await self._run_account_action(command, context)
            outcome = self._reply(
                context,
                f"Invalid hostname '{command.host}'.",
                Reaction.FAILURE,
                ok=False,
                show_help=True,
            )
            return self._gated(outcome, authority)

        raise TypeError(f"unexpected command {command!r}")

    @staticmethod
    def _gated(outcome: DispatchOutcome, authority: Authority) -> DispatchOutcome:
        """Hide a notice unless this process is the one that answers."""
        outcome.visible = authority is Authority.RESPOND
        return outcome

    def _invalid(self, command: Invalid, context: DispatchContext) -> DispatchOutcome:
        if command.tokens == ("help",) and not context.is_direct:
            return self._reply(
                context,
                "please type `help` at Direct Message to me.",
                Reaction.MISDIRECTED,
                ok=False,
            )
        return self._reply(
            context, "Invalid command sequence.", Reaction.FAILURE, ok=False, show_help=True
        )

    async def _run_account_action(
        self, command: HostCommand, context: DispatchContext
    ) -> DispatchOutcome:
        try:
            user = context.directory.display_name(context.user_id)
            if isinstance(command, Create):
                await self._accounts.create_account(
                    user, self.local_host, self.key_uri_template
                )
                success = "creating account is succeeded."
            elif isinstance(command, Update):
                await self._accounts.refresh_authorized_keys(
                    user, self.local_host, self.key_uri_template
                )
                success = "updating key is succeeded."
            else:
                await self._accounts.join_group(user, command.group, self.local_host)
                success = f"joined {command.group} group."
        except CommandError as e:
            logger.warning("%r for %s failed: %s", command, context.user_id, e)
            return self._reply(context, str(e), Reaction.FAILURE, ok=False)

        logger.info("%s: %s", user, success)
        return self._reply(context, success, Reaction.SUCCESS)

    @staticmethod
    def _reply(
        context: DispatchContext,
        text: str,
        reaction: Reaction,
        ok: bool = True,
        show_help: bool = False,
    ) -> DispatchOutcome:
        return DispatchOutcome(
            ok=ok,
            text=f"{mention(context.user_id)} {text}",
            reaction=reaction,
            show_help=show_help,
        )

    # ── Delivery ────────────────────────────────────────────────

    async def deliver(self, outcome: DispatchOutcome, context: DispatchContext) -> None:
        """Post a visible outcome.

        A reply is followed by its reaction and then the help. A bare help
        request gets the help first and the acknowledgement after it.
        """
        if not outcome.visible:
            return

        if outcome.text is not None:
            if outcome.threaded:
                await self._chat.post_thread_message(context.channel, context.ts, outcome.text)
            else:
                await self._chat.post_message(context.channel, outcome.text)
            await self._react(outcome, context)

        if outcome.show_help:
            await self._chat.post_ephemeral_attachments(
                context.channel, context.user_id, self.help_attachments(context)
            )

        if outcome.text is None:
            await self._react(outcome, context)

    async def _react(self, outcome: DispatchOutcome, context: DispatchContext) -> None:
        if outcome.reaction is not None:
            await self._chat.add_reaction(context.channel, context.ts, outcome.reaction.value)

    def help_attachments(self, context: DispatchContext):
        try:
            name = context.directory.display_name(context.user_id)
        except UnknownUserError:
            name = context.user_id
        return build_help_attachments(
            context.bot_id,
            context.monitored,
            self.key_uri_template.replace("{}", name),
            self.gate.hosts,
        )
