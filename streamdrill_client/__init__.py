"""
streamdrill client - Python client for the streamdrill trend service

Features:
- HMAC-SHA1 request signing
- Trend creation, deletion, clearing and meta-information
- Single-shot token-authenticated updates
- Long-lived chunked update streams with keep-alive heartbeat
- Top-n queries and score lookups
"""

__version__ = "0.1.0"
__author__ = "streamdrill"

from .auth import SignatureGenerator, format_http_date
from .client import StreamDrillClient
from .config import ClientConfig
from .exceptions import (
    MissingTokenError,
    StreamClosedError,
    StreamDrillError,
    TransportError,
    TrendNotFoundError,
    UnexpectedStatusError,
)
from .models import CreateResult, ScoredKeys, StreamSummary, TrendEvent
from .stream import UpdateStream
from .transport import AuthenticatedRequestBuilder, SignedRequest

__all__ = [
    'StreamDrillClient',
    'UpdateStream',
    'ClientConfig',
    'SignatureGenerator',
    'format_http_date',
    'AuthenticatedRequestBuilder',
    'SignedRequest',
    'TrendEvent',
    'CreateResult',
    'ScoredKeys',
    'StreamSummary',
    'StreamDrillError',
    'TransportError',
    'UnexpectedStatusError',
    'TrendNotFoundError',
    'MissingTokenError',
    'StreamClosedError',
]
