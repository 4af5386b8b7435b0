"""Slack RTM / Web API payload models and the inbound event decoder."""

import json
from typing import Any, Dict, Mapping, Union

from pydantic import BaseModel, ValidationError

from sacana.domain.errors import EventDecodeError
from sacana.domain.models import ConversationKind
from sacana.domain.watermark import ts_key
from sacana.ports.inbound import (
    ChatMessage,
    ConnectionGoodbye,
    ConnectionHello,
    DirectoryUserChanged,
    DirectoryUserJoined,
    Ignorable,
    InboundEvent,
)


class Profile(BaseModel):
    display_name_normalized: str


class Member(BaseModel):
    id: str
    profile: Profile


class MessagePayload(BaseModel):
    channel: str
    user: str
    text: str
    ts: str


class UserEventPayload(BaseModel):
    user: Member


class ChannelRef(BaseModel):
    id: str
    name: str


class ConversationInfo(BaseModel):
    id: str
    is_im: bool = False
    is_mpim: bool = False
    is_group: bool = False
    is_private: bool = False
    is_channel: bool = False

    @property
    def kind(self) -> ConversationKind:
        if self.is_im:
            return ConversationKind.DIRECT
        if self.is_mpim:
            return ConversationKind.GROUP_DIRECT
        if self.is_private or self.is_group:
            return ConversationKind.PRIVATE
        return ConversationKind.PUBLIC


def _load(raw: Union[str, bytes, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise EventDecodeError(f"invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise EventDecodeError("receive non-event object on RTM")
    return payload


def decode_event(raw: Union[str, bytes, Mapping[str, Any]]) -> InboundEvent:
    """Decode one RTM frame (or history entry) into an ``InboundEvent``."""
    payload = _load(raw)
    kind = payload.get("type")
    if not isinstance(kind, str):
        raise EventDecodeError("receive non-event object on RTM")

    try:
        if kind == "message":
            message = MessagePayload.model_validate(payload)
            ts_key(message.ts)
            return ChatMessage(
                channel=message.channel,
                author=message.user,
                text=message.text,
                ts=message.ts,
            )
        if kind == "hello":
            return ConnectionHello()
        if kind == "goodbye":
            return ConnectionGoodbye()
        if kind == "user_change":
            member = UserEventPayload.model_validate(payload).user
            return DirectoryUserChanged(user_id=member.id, name=member.profile.display_name_normalized)
        if kind == "team_join":
            member = UserEventPayload.model_validate(payload).user
            return DirectoryUserJoined(user_id=member.id, name=member.profile.display_name_normalized)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise EventDecodeError(f"malformed {kind} event (bad fields: {fields})") from e

    return Ignorable(kind=kind)


def decode_history_message(entry: Mapping[str, Any], channel: str) -> ChatMessage:
    """History entries carry no channel; attach the one they were fetched from."""
    event = decode_event({"type": "message", **entry, "channel": channel})
    if not isinstance(event, ChatMessage):
        raise EventDecodeError(f"history entry is not a message: {entry!r}")
    return event
