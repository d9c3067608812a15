"""
StreamDrill Client - Main client implementation

Creates trends, pushes updates (single-shot or streamed), queries top-n
lists and scores, and manages trend meta-information.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote_plus

import requests

from .config import ClientConfig
from .constants import AUTH_SCHEME_TOKEN, HEADER_AUTHORIZATION, HEADER_CONTENT_TYPE
from .channel import ChunkedUploadChannel
from .exceptions import (
    MissingTokenError,
    TrendNotFoundError,
    UnexpectedStatusError,
)
from .models import CreateResult, ScoredKeys, Timestamp, check_keys, to_epoch_millis
from .stream import UpdateStream
from .transport import (
    AuthenticatedRequestBuilder,
    SignedRequest,
    create_session,
    format_query,
    read_json,
    read_text,
    send,
)

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NOT_FOUND = 404


def encode(value: str) -> str:
    """URL-encode a single value, form style."""
    return quote_plus(value, safe='')


def encode_keys(keys: Sequence[str]) -> str:
    """URL-encode keys and join them with ':'."""
    return ":".join(encode(key) for key in keys)


class StreamDrillClient:
    """
    Client for a streamdrill server.

    Usage:
        client = StreamDrillClient("http://localhost:9669")

        token, is_new = client.create("searches", "term", 1000, ["day", "hour"])

        with client.stream() as stream:
            stream.update("searches", ["python"])

        for keys, score in client.query("searches", count=10):
            print(keys, score)
    """

    def __init__(
        self,
        server_url: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize client.

        Args:
            server_url: Base URL of the server (overrides config)
            api_key: API key (overrides config)
            api_secret: API secret (overrides config)
            config: Client configuration (default: ClientConfig())
            session: HTTP session to use (default: a new session)
        """
        overrides = {"server_url": server_url, "api_key": api_key, "api_secret": api_secret}
        config = replace(
            config or ClientConfig(),
            **{name: value for name, value in overrides.items() if value is not None}
        )

        is_valid, error = config.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {error}")

        self.config = config
        self.server_url = config.server_url.rstrip('/')
        self._requests = AuthenticatedRequestBuilder(config)
        self._session = session or create_session(config)

        # trend name -> API token, filled by create()
        self._tokens: Dict[str, str] = {}
        self._tokens_lock = threading.Lock()

    def _send(self, request: SignedRequest, data=None) -> requests.Response:
        return send(self._session, request, data=data, verify=self.config.verify_ssl)

    def token(self, trend: str) -> str:
        """
        Return the API token cached for a trend.

        Raises:
            MissingTokenError: If create() was never called for the trend
        """
        with self._tokens_lock:
            token = self._tokens.get(trend)
        if token is None:
            raise MissingTokenError(trend)
        return token

    def create(self, trend: str, entity: str, size: int, timescales: Sequence[str]) -> CreateResult:
        """
        Create a new trend.

        Args:
            trend: Name of the trend
            entity: Entity of the events, e.g. ``user:item``
            size: Maximum number of items kept
            timescales: Timescales to track, e.g. ``["day", "hour"]``

        Returns:
            CreateResult of (API token, whether the trend is new)

        Raises:
            UnexpectedStatusError: On any status other than 200 or 201
        """
        path = f"/1/create/{trend}/{entity}"
        query = {"size": size, "timescales": encode(",".join(timescales))}
        response = self._send(self._requests.build("GET", path, query))

        status = response.status_code
        if status not in (HTTP_OK, HTTP_CREATED):
            raise UnexpectedStatusError(status, f"Return code {status} on trend creation")

        json_response = read_json(response)
        logger.debug(f"create({trend}, {entity}, {size}) => {status}, '{json_response}'")

        token = json_response[trend]
        with self._tokens_lock:
            self._tokens[trend] = token

        return CreateResult(token, status == HTTP_CREATED)

    def update(
        self,
        trend: str,
        keys: Sequence[str],
        ts: Optional[Timestamp] = None,
        value: Optional[float] = None
    ) -> str:
        """
        Hit and run update with a single HTTP GET.

        Authenticated with the trend's API token from create().

        Args:
            trend: Name of the trend
            keys: Keys of the item to update
            ts: Time stamp of the event (optional)
            value: A predefined value to use (optional)

        Returns:
            Response text (unformatted)

        Raises:
            TypeError: If keys is a plain string
            ValueError: If keys is empty
            MissingTokenError: If create() was never called for the trend
        """
        keys = check_keys(trend, keys)
        token = self.token(trend)

        query = {}
        if value is not None:
            query["v"] = "%f" % value
        if ts is not None:
            query["ts"] = to_epoch_millis(ts)

        request = SignedRequest(
            method="GET",
            url=f"{self.server_url}/1/update/{trend}/{encode_keys(keys)}" + format_query(query),
            headers={HEADER_AUTHORIZATION: f"{AUTH_SCHEME_TOKEN} {token}"},
            timeout=self._requests.timeout,
        )
        return read_text(self._send(request))

    def query(
        self,
        trend: str,
        count: int = 20,
        offset: int = 0,
        timescale: Optional[str] = None,
        filter: Optional[Mapping[str, str]] = None
    ) -> List[ScoredKeys]:
        """
        Query the trend and return a top-n list with scores.

        Args:
            trend: Name of the trend
            count: Number of elements to return
            offset: Offset within the trend to start from
            timescale: Timescale to query (e.g. day, hour or minute)
            filter: Entity/key pairs to restrict the result to

        Returns:
            List of ScoredKeys, best first
        """
        query = {"count": count}
        if offset != 0:
            query["offset"] = offset
        if timescale is not None:
            query["timescale"] = timescale
        for entity, key in (filter or {}).items():
            query[entity] = encode(key)

        json_response = read_json(self._send(self._requests.build("GET", f"/1/query/{trend}", query)))
        return [ScoredKeys.from_dict(item) for item in json_response["trend"]]

    def _score_query(self, ts: Optional[Timestamp], timescale: Optional[str]) -> Dict[str, object]:
        query = {}
        if ts is not None:
            query["ts"] = to_epoch_millis(ts)
        if timescale is not None:
            query["timescale"] = timescale
        return query

    def score(
        self,
        trend: str,
        keys: Sequence[str],
        ts: Optional[Timestamp] = None,
        timescale: Optional[str] = None
    ) -> float:
        """
        Query the score for one key combination.

        Args:
            trend: Name of the trend
            keys: The keys to query
            ts: An optional time stamp
            timescale: An optional timescale

        Returns:
            The score
        """
        body = encode_keys(check_keys(trend, keys))
        path = f"/1/query/{trend}/score"
        request = self._requests.build("POST", path, self._score_query(ts, timescale))
        json_response = read_json(self._send(request, data=body.encode('utf-8')))
        return float(json_response[0]["score"])

    def scores(
        self,
        trend: str,
        key_groups: Sequence[Sequence[str]],
        ts: Optional[Timestamp] = None,
        timescale: Optional[str] = None
    ) -> List[ScoredKeys]:
        """
        Query the scores for a list of key combinations.

        Args:
            trend: Name of the trend
            key_groups: The key combinations to query
            ts: An optional time stamp
            timescale: An optional timescale

        Returns:
            List of ScoredKeys in server order
        """
        path = f"/1/query/{trend}/score"
        body = "\n".join(encode_keys(check_keys(trend, keys)) for keys in key_groups)
        request = self._requests.build("POST", path, self._score_query(ts, timescale))
        json_response = read_json(self._send(request, data=body.encode('utf-8')))
        return [ScoredKeys.from_dict(item) for item in json_response]

    def stream(self) -> UpdateStream:
        """
        Open a streaming update connection.

        Returns:
            UpdateStream; call done() on it to finish the upload
        """
        request = self._requests.build(
            "POST", "/1/update", headers={HEADER_CONTENT_TYPE: 'application/json'}
        )
        channel = ChunkedUploadChannel(
            self._session,
            request,
            chunk_size=self.config.chunk_size,
            verify=self.config.verify_ssl
        )
        logger.info(f"Opened update stream to {request.url}")
        return UpdateStream(channel, heartbeat_interval=self.config.heartbeat_interval)

    def set_meta(self, trend: str, property: str, value: str):
        """
        Set meta-information for a trend.

        Args:
            trend: Name of the trend
            property: Name of the meta-property
            value: Value of the meta-property
        """
        path = f"/1/meta/{trend}/{property}"
        read_text(self._send(self._requests.build("GET", path, {"value": encode(value)})))

    def get_meta(self, trend: str, property: str) -> str:
        """
        Get meta-information for a trend.

        Args:
            trend: Name of the trend
            property: Name of the meta-property

        Returns:
            Value of the meta-property
        """
        path = f"/1/meta/{trend}/{property}"
        return read_json(self._send(self._requests.build("GET", path)))["value"]

    def _delete(self, path: str, trend: str):
        try:
            read_text(self._send(self._requests.build("DELETE", path)))
        except UnexpectedStatusError as e:
            if e.status_code == HTTP_NOT_FOUND:
                raise TrendNotFoundError(trend) from e
            raise

    def delete(self, trend: str):
        """
        Delete a trend.

        Raises:
            TrendNotFoundError: If the trend does not exist
        """
        self._delete(f"/1/delete/{trend}", trend)
        with self._tokens_lock:
            self._tokens.pop(trend, None)

    def clear(self, trend: str):
        """
        Remove all items from a trend.

        Raises:
            TrendNotFoundError: If the trend does not exist
        """
        self._delete(f"/1/clear/{trend}", trend)

    def close(self):
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
