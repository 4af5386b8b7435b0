"""Tests for domain/dispatcher.py: authority, outcomes and delivery order."""

import pytest
from unittest.mock import AsyncMock, call

from sacana.domain.authority import AuthorityGate
from sacana.domain.command_parser import parse_command
from sacana.domain.directory import DirectoryCache
from sacana.domain.dispatcher import CommandDispatcher, DispatchContext
from sacana.domain.errors import AccountAlreadyExists, CommandFailed, SlackApiError
from sacana.domain.models import Create, Help, Invalid, Join, Ping, Reaction, Update

HOSTS = ["hostA", "hostB"]
KEYS = "https://keys.example/{}.keys"


def _dispatcher(local_host="hostA", chat=None, accounts=None):
    return CommandDispatcher(
        chat if chat is not None else AsyncMock(),
        accounts if accounts is not None else AsyncMock(),
        AuthorityGate(local_host, HOSTS),
        KEYS,
    )


def _context(is_direct=False, user_id="U1"):
    return DispatchContext(
        user_id=user_id,
        channel="D1" if is_direct else "C1",
        ts="1700000000.000100",
        is_direct=is_direct,
        bot_id="UBOT",
        monitored=("C1",),
        directory=DirectoryCache.from_listings([("U1", "alice")], [("C1", "infra")]),
    )


class TestPing:
    @pytest.mark.asyncio
    async def test_pong_on_every_host(self):
        for host in HOSTS:
            outcome = await _dispatcher(host).dispatch(Ping(), _context())
            assert outcome.text == f"pong@{host}"
            assert outcome.threaded is True
            assert outcome.reaction is None

    @pytest.mark.asyncio
    async def test_delivered_in_thread(self):
        chat = AsyncMock()
        await _dispatcher("hostB", chat=chat).handle(Ping(), _context())
        chat.post_thread_message.assert_awaited_once_with("C1", "1700000000.000100", "pong@hostB")
        chat.post_message.assert_not_called()
        chat.add_reaction.assert_not_called()


class TestHelp:
    @pytest.mark.asyncio
    async def test_responder_sends_ephemeral_help(self):
        chat = AsyncMock()
        outcome = await _dispatcher(chat=chat).handle(Help(), _context(is_direct=True))
        assert outcome.show_help is True
        _, user, attachments = chat.post_ephemeral_attachments.await_args.args
        assert user == "U1"
        assert "https://keys.example/alice.keys" in attachments[1]["text"]
        chat.add_reaction.assert_awaited_once_with("D1", "1700000000.000100", "ballot_box_with_check")
        names = [c[0] for c in chat.mock_calls]
        assert names == ["post_ephemeral_attachments", "add_reaction"]

    @pytest.mark.asyncio
    async def test_non_responder_silent(self):
        chat = AsyncMock()
        outcome = await _dispatcher("hostB", chat=chat).handle(Help(), _context(is_direct=True))
        assert outcome.visible is False
        assert chat.mock_calls == []

    @pytest.mark.asyncio
    async def test_help_in_channel_redirects_to_dm(self):
        chat = AsyncMock()
        command = parse_command("<@UBOT> help", False, "UBOT")
        outcome = await _dispatcher(chat=chat).handle(command, _context())
        assert outcome.reaction is Reaction.MISDIRECTED
        chat.post_message.assert_awaited_once_with(
            "C1", "<@U1> please type `help` at Direct Message to me."
        )
        chat.post_ephemeral_attachments.assert_not_called()
        chat.add_reaction.assert_awaited_once_with("C1", "1700000000.000100", "exclamation")


class TestInvalid:
    @pytest.mark.asyncio
    async def test_text_then_reaction_then_help(self):
        chat = AsyncMock()
        await _dispatcher(chat=chat).handle(Invalid(("frobnicate",)), _context())
        names = [c[0] for c in chat.mock_calls]
        assert names == ["post_message", "add_reaction", "post_ephemeral_attachments"]
        assert chat.post_message.await_args == call("C1", "<@U1> Invalid command sequence.")
        assert chat.add_reaction.await_args == call("C1", "1700000000.000100", "x")

    @pytest.mark.asyncio
    async def test_requester_missing_from_directory(self):
        chat = AsyncMock()
        outcome = await _dispatcher(chat=chat).handle(Invalid(("bogus",)), _context(user_id="U9"))
        assert outcome.text == "<@U9> Invalid command sequence."
        chat.add_reaction.assert_awaited_once_with("C1", "1700000000.000100", "x")
        _, user, attachments = chat.post_ephemeral_attachments.await_args.args
        assert user == "U9"
        assert "https://keys.example/U9.keys" in attachments[1]["text"]

    @pytest.mark.asyncio
    async def test_non_responder_silent(self):
        chat = AsyncMock()
        outcome = await _dispatcher("hostB", chat=chat).handle(Invalid(("x",)), _context())
        assert outcome.visible is False
        assert outcome.ok is False
        assert chat.mock_calls == []


class TestHostCommands:
    @pytest.mark.asyncio
    async def test_create_for_other_host_is_invalid_host_on_responder(self):
        accounts = AsyncMock()
        outcome = await _dispatcher("hostA", accounts=accounts).dispatch(Create("hostZ"), _context())
        assert outcome.text == "<@U1> Invalid hostname 'hostZ'."
        assert outcome.reaction is Reaction.FAILURE
        assert outcome.show_help is True
        assert accounts.mock_calls == []

    @pytest.mark.asyncio
    async def test_invalid_host_reaction_before_help(self):
        chat = AsyncMock()
        await _dispatcher(chat=chat).handle(Join("docker", "hostZ"), _context())
        names = [c[0] for c in chat.mock_calls]
        assert names == ["post_message", "add_reaction", "post_ephemeral_attachments"]

    @pytest.mark.asyncio
    async def test_create_host_a_on_host_b_never_executes(self):
        accounts = AsyncMock()
        chat = AsyncMock()
        command = parse_command("create hostA", True, "UBOT")
        outcome = await _dispatcher("hostB", chat=chat, accounts=accounts).handle(command, _context())
        assert outcome.visible is False
        assert outcome.ok is False
        assert outcome.text == "<@U1> Invalid hostname 'hostA'."
        assert outcome.reaction is Reaction.FAILURE
        assert accounts.mock_calls == []
        assert chat.mock_calls == []

    @pytest.mark.asyncio
    async def test_unknown_host_on_non_responder_is_silent(self):
        accounts = AsyncMock()
        outcome = await _dispatcher("hostB", accounts=accounts).dispatch(Update("hostZ"), _context())
        assert outcome.visible is False
        assert accounts.mock_calls == []

    @pytest.mark.asyncio
    async def test_create_success(self):
        accounts = AsyncMock()
        chat = AsyncMock()
        outcome = await _dispatcher("hostB", chat=chat, accounts=accounts).handle(Create("hostB"), _context())
        accounts.create_account.assert_awaited_once_with("alice", "hostB", KEYS)
        assert outcome.ok is True
        chat.post_message.assert_awaited_once_with("C1", "<@U1> creating account is succeeded.")
        chat.add_reaction.assert_awaited_once_with("C1", "1700000000.000100", "o")

    @pytest.mark.asyncio
    async def test_update_success(self):
        accounts = AsyncMock()
        outcome = await _dispatcher("hostB", accounts=accounts).dispatch(Update("hostB"), _context())
        accounts.refresh_authorized_keys.assert_awaited_once_with("alice", "hostB", KEYS)
        assert outcome.text == "<@U1> updating key is succeeded."
        assert outcome.reaction is Reaction.SUCCESS

    @pytest.mark.asyncio
    async def test_join_success(self):
        accounts = AsyncMock()
        outcome = await _dispatcher("hostA", accounts=accounts).dispatch(Join("docker", "hostA"), _context())
        accounts.join_group.assert_awaited_once_with("alice", "docker", "hostA")
        assert outcome.text == "<@U1> joined docker group."

    @pytest.mark.asyncio
    async def test_account_already_exists(self):
        accounts = AsyncMock()
        accounts.create_account.side_effect = AccountAlreadyExists("hostA")
        outcome = await _dispatcher("hostA", accounts=accounts).dispatch(Create("hostA"), _context())
        assert outcome.ok is False
        assert outcome.reaction is Reaction.FAILURE
        assert outcome.text == "<@U1> Your account already exists on hostA"
        accounts.refresh_authorized_keys.assert_not_called()

    @pytest.mark.asyncio
    async def test_command_failure_surfaced_verbatim(self):
        accounts = AsyncMock()
        accounts.join_group.side_effect = CommandFailed("usermod", 6)
        outcome = await _dispatcher("hostA", accounts=accounts).dispatch(Join("nope", "hostA"), _context())
        assert outcome.text == "<@U1> `usermod` failed. status code: 6"

    @pytest.mark.asyncio
    async def test_unknown_user_is_failure(self):
        accounts = AsyncMock()
        outcome = await _dispatcher("hostA", accounts=accounts).dispatch(
            Create("hostA"), _context(user_id="U404")
        )
        assert outcome.ok is False
        assert outcome.reaction is Reaction.FAILURE
        accounts.create_account.assert_not_called()


class TestDelivery:
    @pytest.mark.asyncio
    async def test_rest_failure_propagates(self):
        chat = AsyncMock()
        chat.post_message.side_effect = SlackApiError("chat.postMessage", "not_in_channel")
        with pytest.raises(SlackApiError):
            await _dispatcher(chat=chat).handle(Invalid(("x",)), _context())
        chat.add_reaction.assert_not_called()
