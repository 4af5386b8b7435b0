"""Help text rendered as Slack message attachments."""

from typing import Any, Dict, List, Optional, Sequence

ATTACHMENT_COLORS = ("#007dc6", "#ed1b23", "#fdb811", "#71bf44", "#00a650", "#6c6e71")

Field = Dict[str, Any]


def _hostname_field(what: str) -> Field:
    return {
        "title": "_HOSTNAME_",
        "value": f"The host name on which you want to {what} (see below _HOSTNAME_ list)",
    }


def _available_on_field(where: str) -> Field:
    return {"title": "available on", "value": where}


def _group_field() -> Field:
    return {
        "title": "_GROUPNAME_",
        "value": (
            "The group name which you want to join on _HOSTNAME_ . "
            "You can check the available groups on _HOSTNAME_ using `cat /etc/groups` ."
        ),
    }


def _pair_fields(fields: Sequence[Field]) -> List[Field]:
    """Mark fields as short so they render two per row; an odd trailing one stays full width."""
    even = len(fields) - len(fields) % 2
    return [dict(f, short=True) if i < even else dict(f) for i, f in enumerate(fields)]


def _head_lower(text: str) -> str:
    return text[:1].lower() + text[1:]


def _attachment(
    color: str,
    title: str,
    description: Optional[str] = None,
    items: Optional[Sequence[str]] = None,
    fields: Optional[Sequence[Field]] = None,
) -> Dict[str, Any]:
    attachment: Dict[str, Any] = {"color": color}
    if items is not None:
        attachment["text"] = "\n    ".join([title, *items])
        attachment["fallback"] = f"{title}: {', '.join(items)}"
    else:
        attachment["text"] = f"{title}\n{description}"
        attachment["fallback"] = f"{title}: {_head_lower(description or '')}"
    if fields is not None:
        attachment["fields"] = _pair_fields(fields)
        attachment["mrkdwn_in"] = ["text", "fields"]
    else:
        attachment["mrkdwn_in"] = ["text"]
    return attachment


def build_help_attachments(
    bot_id: str,
    channel_ids: Sequence[str],
    key_uri: str,
    hosts: Sequence[str],
) -> List[Dict[str, Any]]:
    """Describe every command, where it is accepted, and the known hosts.

    ``key_uri`` is the public key location already personalised for the
    requesting user.
    """
    channels = ", ".join(f"<#{c}>" for c in channel_ids)
    dm = f"DM(<@{bot_id}>)"
    channels_and_dm = f"{channels}, {dm}" if channels else dm
    me = f"<@{bot_id}>"

    entries = [
        dict(
            title=f"*{me} create _HOSTNAME_*",
            description="Creates you an account on _HOSTNAME_",
            fields=[_hostname_field("create your account"), _available_on_field(channels)],
        ),
        dict(
            title=f"*{me} update _HOSTNAME_*",
            description=(
                f"Retrieves all public keys from `{key_uri}` and add them to "
                "`$HOME/.ssh/authorized_keys` (this command *WILL OVERWRITE* "
                "your `$HOME/.ssh/authorized_keys`)"
            ),
            fields=[
                _hostname_field("update your `authorized_keys`"),
                _available_on_field(channels),
            ],
        ),
        dict(
            title=f"*{me} join _GROUPNAME_ _HOSTNAME_*",
            description="Join _GROUPNAME_ group on _HOSTNAME_",
            fields=[
                _group_field(),
                _hostname_field("join the group"),
                _available_on_field(channels),
            ],
        ),
        dict(
            title=f"*{me} ping*",
            description="Get pongs from alive bots",
            fields=[_available_on_field(channels_and_dm)],
        ),
        dict(
            title=f"*{me} help*",
            description="Shows this message",
            fields=[_available_on_field(dm)],
        ),
        dict(title="*_HOSTNAME_ list*", items=list(hosts)),
    ]
    return [_attachment(color, **entry) for color, entry in zip(ATTACHMENT_COLORS, entries)]
