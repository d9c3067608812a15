"""
HTTP transport - signed request construction and response handling
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

from .auth import SignatureGenerator, format_http_date
from .config import ClientConfig
from .constants import AUTH_SCHEME_SIGNED, HEADER_AUTHORIZATION, HEADER_DATE
from .exceptions import TransportError, UnexpectedStatusError

logger = logging.getLogger(__name__)


@dataclass
class SignedRequest:
    """
    A fully addressed, dated and signed request, ready for the session.

    Attributes:
        method: HTTP method
        url: Absolute URL including the query string
        headers: Request headers (Date, Authorization, ...)
        timeout: (connect, read) timeouts in seconds
    """
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Tuple[float, float] = (5.0, 60.0)


def format_query(query_params: Optional[Mapping[str, Any]]) -> str:
    """
    Join query parameters as ``?k=v&k=v``.

    Values are inserted verbatim; callers encode them where needed.
    """
    if not query_params:
        return ""
    return "?" + "&".join(f"{key}={value}" for key, value in query_params.items())


class AuthenticatedRequestBuilder:
    """
    Builds signed requests against a streamdrill server.

    Usage:
        builder = AuthenticatedRequestBuilder(config)
        request = builder.build("GET", "/1/query/trend", {"count": 20})
    """

    def __init__(
        self,
        config: ClientConfig,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize request builder.

        Args:
            config: Client configuration
            clock: Returns the instant to date requests with (default: now)
        """
        self.server_url = config.server_url.rstrip('/')
        self.api_key = config.api_key
        self._api_secret = config.api_secret
        self.timeout = (config.connect_timeout, config.read_timeout)
        self._clock = clock
        self._signer = SignatureGenerator()

    def build(
        self,
        method: str,
        path: str,
        query_params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> SignedRequest:
        """
        Build a signed request.

        The signature covers the path only, never the query string.

        Args:
            method: HTTP method
            path: Request path, e.g. ``/1/query/mytrend``
            query_params: Query parameters, already encoded
            headers: Extra headers

        Returns:
            SignedRequest
        """
        date = format_http_date(self._clock() if self._clock else None)
        signature = self._signer.sign(method, date, path, self._api_secret)

        request_headers = dict(headers or {})
        request_headers[HEADER_DATE] = date
        request_headers[HEADER_AUTHORIZATION] = f"{AUTH_SCHEME_SIGNED} {self.api_key}:{signature}"

        return SignedRequest(
            method=method,
            url=self.server_url + path + format_query(query_params),
            headers=request_headers,
            timeout=self.timeout,
        )


def create_session(config: ClientConfig) -> requests.Session:
    """Create HTTP session without automatic retries."""
    session = requests.Session()

    adapter = HTTPAdapter(max_retries=URLRetry(total=0, raise_on_status=False))
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({'User-Agent': config.user_agent})
    return session


def send(
    session: requests.Session,
    request: SignedRequest,
    data: Any = None,
    verify: bool = True
) -> requests.Response:
    """
    Send a signed request.

    Raises:
        TransportError: On connect/read timeouts, DNS failures, resets
    """
    logger.debug(f"{request.method} {request.url}")
    try:
        return session.request(
            request.method,
            request.url,
            headers=request.headers,
            data=data,
            timeout=request.timeout,
            verify=verify
        )
    except requests.RequestException as e:
        raise TransportError(f"{request.method} {request.url} failed: {e}") from e


def read_text(response: requests.Response) -> str:
    """
    Return the response body.

    Raises:
        UnexpectedStatusError: If the status code is 400 or above
    """
    if response.status_code >= 400:
        raise UnexpectedStatusError(
            response.status_code,
            f"Return code {response.status_code} for {response.url}"
        )
    return response.text


def read_json(response: requests.Response) -> Any:
    """Return the response body parsed as JSON."""
    return json.loads(read_text(response))
