"""In-memory snapshot of users and channels, rebuilt on every connect."""

from typing import Dict, Iterable, List, Optional, Tuple

from sacana.domain.errors import UnknownChannelError, UnknownUserError
from sacana.domain.models import ConversationKind


class DirectoryCache:
    """User id → display name and channel name → channel id.

    A snapshot is replaced in full; entries from an earlier snapshot are
    never merged into a new one.
    """

    def __init__(
        self,
        users: Optional[Dict[str, str]] = None,
        channels: Optional[Dict[str, str]] = None,
    ):
        self._users: Dict[str, str] = dict(users or {})
        self._channels: Dict[str, str] = dict(channels or {})
        self._kinds: Dict[str, ConversationKind] = {}

    @classmethod
    def from_listings(
        cls,
        users: Iterable[Tuple[str, str]],
        channels: Iterable[Tuple[str, str]],
    ) -> "DirectoryCache":
        """Build a snapshot from ``(user_id, name)`` and ``(channel_id, name)`` pairs."""
        return cls(
            users={user_id: name for user_id, name in users},
            channels={name: channel_id for channel_id, name in channels},
        )

    # -- users --

    def display_name(self, user_id: str) -> str:
        try:
            return self._users[user_id]
        except KeyError:
            raise UnknownUserError(user_id) from None

    def upsert_user(self, user_id: str, name: str) -> None:
        self._users[user_id] = name

    @property
    def user_count(self) -> int:
        return len(self._users)

    # -- channels --

    def channel_id(self, name: str) -> str:
        try:
            return self._channels[name]
        except KeyError:
            raise UnknownChannelError(name) from None

    def resolve_channels(self, names: Iterable[str]) -> List[str]:
        """Map configured channel names to ids, in the given order."""
        return [self.channel_id(name) for name in names]

    @property
    def channel_count(self) -> int:
        return len(self._channels)

    # -- conversation kinds (memoized lookups) --

    def cached_kind(self, channel: str) -> Optional[ConversationKind]:
        return self._kinds.get(channel)

    def remember_kind(self, channel: str, kind: ConversationKind) -> None:
        self._kinds[channel] = kind
