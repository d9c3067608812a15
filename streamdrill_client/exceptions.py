"""
Exceptions raised by the streamdrill client.
"""

from typing import Optional


class StreamDrillError(Exception):
    """Base class for all client errors."""


class TransportError(StreamDrillError):
    """Connect/read timeout, DNS failure, connection reset and the like."""


class UnexpectedStatusError(StreamDrillError, IOError):
    """The server answered with a status code the call does not accept."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Unexpected return code {status_code}")


class TrendNotFoundError(StreamDrillError, LookupError):
    """The trend addressed by delete/clear does not exist."""

    def __init__(self, trend: str):
        self.trend = trend
        super().__init__(f"Trend {trend} does not exist")


class MissingTokenError(StreamDrillError, LookupError):
    """No API token is known for the trend; call create() first."""

    def __init__(self, trend: str):
        self.trend = trend
        super().__init__(f"No API token for trend {trend}, create it first")


class StreamClosedError(StreamDrillError, RuntimeError):
    """Operation attempted on an update stream that has been closed."""

    def __init__(self, message: str = "stream closed"):
        super().__init__(message)
