"""
Trend events and result types

TrendEvent is the unit pushed through an update stream. It serializes to a
single line of compact JSON whose fields depend on which optional values
were supplied.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, NamedTuple, Optional, Sequence, Tuple, Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Timestamp = Union[datetime, int]


def to_epoch_millis(ts: Timestamp) -> int:
    """
    Convert a timestamp to epoch milliseconds.

    Args:
        ts: datetime (naive values are taken as UTC) or epoch milliseconds

    Returns:
        Milliseconds since the Unix epoch
    """
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return (ts - EPOCH) // timedelta(milliseconds=1)
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        raise TypeError(f"timestamp must be a datetime or epoch milliseconds, got {type(ts).__name__}")
    return int(ts)


def check_keys(trend: str, keys: Sequence[str]) -> Tuple[str, ...]:
    """
    Validate the keys of an item and return them as a tuple.

    Raises:
        TypeError: If keys is a plain string
        ValueError: If keys is empty
    """
    if isinstance(keys, str):
        raise TypeError("keys must be a sequence of strings, not a string")
    keys = tuple(keys)
    if not keys:
        raise ValueError(f"at least one key is required for trend {trend!r}")
    return keys


class CreateResult(NamedTuple):
    """Outcome of creating a trend."""
    token: str
    is_new: bool


class ScoredKeys(NamedTuple):
    """A key combination and its score."""
    keys: Tuple[str, ...]
    score: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScoredKeys':
        return cls(tuple(data["keys"]), float(data["score"]))


class StreamSummary(NamedTuple):
    """Tally reported by the server when an update stream is closed."""
    updates: int
    rate: float


@dataclass(frozen=True)
class TrendEvent:
    """
    A single keyed event for a trend.

    Attributes:
        trend: Name of the trend
        keys: Keys of the item to update (at least one)
        value: Predefined value to use instead of the default increment
        timestamp: Time of the event, datetime or epoch milliseconds
    """
    trend: str
    keys: Tuple[str, ...]
    value: Optional[float] = None
    timestamp: Optional[Timestamp] = None

    def __post_init__(self):
        object.__setattr__(self, 'keys', check_keys(self.trend, self.keys))

    @classmethod
    def of(
        cls,
        trend: str,
        keys: Sequence[str],
        value: Optional[float] = None,
        ts: Optional[Timestamp] = None
    ) -> 'TrendEvent':
        return cls(trend=trend, keys=keys, value=value, timestamp=ts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire dictionary, omitting absent optional fields."""
        data: Dict[str, Any] = {"t": self.trend, "k": list(self.keys)}
        if self.value is not None:
            data["v"] = self.value
        if self.timestamp is not None:
            data["ts"] = to_epoch_millis(self.timestamp)
        return data

    def to_json(self) -> str:
        """Convert to a compact JSON string."""
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)

    def to_line(self) -> bytes:
        """Encode as one newline-terminated UTF-8 frame."""
        return (self.to_json() + "\n").encode('utf-8')
