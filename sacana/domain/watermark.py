"""Forward-only timestamp of the most recently processed event."""

from decimal import Decimal, InvalidOperation
from typing import Optional

from sacana.domain.errors import EventDecodeError


def ts_key(ts: str) -> Decimal:
    """Numeric sort key for a Slack timestamp such as ``"1700000000.000200"``."""
    try:
        return Decimal(ts)
    except InvalidOperation as e:
        raise EventDecodeError(f"invalid timestamp {ts!r}") from e


class Watermark:
    """Lower bound for catch-up requests.

    Holds the original timestamp string so it can be handed back to the
    platform verbatim, and compares numerically.
    """

    def __init__(self, ts: Optional[str] = None):
        self._ts: Optional[str] = None
        if ts is not None:
            self.advance(ts)

    @property
    def value(self) -> Optional[str]:
        return self._ts

    def advance(self, ts: str) -> bool:
        """Move forward to ``ts``. Returns False when ``ts`` is not newer."""
        key = ts_key(ts)
        if self._ts is not None and key <= ts_key(self._ts):
            return False
        self._ts = ts
        return True

    def __repr__(self) -> str:
        return f"Watermark({self._ts!r})"
