"""
Chunked upload channel

Holds one long-running POST open and feeds its body frame by frame. requests
sends a generator body with ``Transfer-Encoding: chunked``, so every frame
handed to send() goes out as its own chunk as soon as the sender thread
picks it up.
"""

import logging
import threading
from queue import Full, Queue
from typing import Iterator, Optional

import requests

from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_PENDING_FRAMES, HEADER_CONTENT_TYPE
from .exceptions import StreamClosedError, TransportError
from .transport import SignedRequest, send

logger = logging.getLogger(__name__)

_END_OF_BODY = None


class ChunkedUploadChannel:
    """
    Outbound byte channel backed by a chunked HTTP POST.

    Usage:
        channel = ChunkedUploadChannel(session, request)
        channel.send(b'{"t":"x","k":["a"]}\\n')
        response = channel.close()
    """

    def __init__(
        self,
        session: requests.Session,
        request: SignedRequest,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        verify: bool = True,
        max_pending: int = DEFAULT_MAX_PENDING_FRAMES,
        send_timeout: Optional[float] = None
    ):
        """
        Open the channel and start the sender thread.

        Args:
            session: HTTP session to post with
            request: Signed POST request for the upload endpoint
            chunk_size: Maximum bytes per chunk
            verify: Verify SSL certificates
            max_pending: Frames that may wait for the sender thread
            send_timeout: Seconds send() waits for room (default: read timeout)
        """
        self.request = request
        self.request.headers.setdefault(HEADER_CONTENT_TYPE, 'application/json')
        self.chunk_size = chunk_size

        self._session = session
        self._verify = verify
        self._frames: Queue = Queue(maxsize=max_pending)
        self.send_timeout = send_timeout if send_timeout is not None else request.timeout[1]
        self._closed = False
        self._response: Optional[requests.Response] = None
        self._error: Optional[BaseException] = None

        self._sender_thread = threading.Thread(
            target=self._upload,
            name="streamdrill-upload",
            daemon=True
        )
        self._sender_thread.start()

    def _body(self) -> Iterator[bytes]:
        """Yield queued frames, split to chunk_size, until the end marker."""
        while True:
            frame = self._frames.get()
            if frame is _END_OF_BODY:
                return
            for start in range(0, len(frame), self.chunk_size):
                yield frame[start:start + self.chunk_size]

    def _upload(self):
        """Sender thread: run the POST until the body ends."""
        try:
            self._response = send(self._session, self.request, data=self._body(), verify=self._verify)
        except Exception as e:
            logger.error(f"Upload to {self.request.url} failed: {e}")
            self._error = e

    @property
    def failed(self) -> bool:
        return self._error is not None

    def send(self, frame: bytes):
        """
        Hand one frame to the upload as its own chunk.

        Blocks while the sender thread is still busy with earlier frames.

        Raises:
            StreamClosedError: If the channel has been closed
            TransportError: If the upload has failed, ended early or stalled
        """
        if self._closed:
            raise StreamClosedError()
        if self._error is not None:
            raise TransportError(f"upload to {self.request.url} failed: {self._error}") from self._error
        if not self._sender_thread.is_alive():
            raise TransportError(f"upload to {self.request.url} ended before the stream was closed")
        self._put(frame)

    def _put(self, item: Optional[bytes]):
        try:
            self._frames.put(item, timeout=self.send_timeout)
        except Full:
            self._error = TransportError(
                f"upload to {self.request.url} stalled for {self.send_timeout}s"
            )
            logger.warning(str(self._error))
            raise self._error

    def close(self, timeout: Optional[float] = None) -> requests.Response:
        """
        End the body and wait for the server's response.

        Args:
            timeout: Seconds to wait for the sender thread (default: read timeout)

        Returns:
            The response to the upload

        Raises:
            StreamClosedError: If the channel was already closed
            TransportError: If the upload failed or did not finish in time
        """
        if self._closed:
            raise StreamClosedError()
        self._closed = True

        if self._sender_thread.is_alive():
            self._put(_END_OF_BODY)
        self._sender_thread.join(timeout=timeout if timeout is not None else self.request.timeout[1])

        if self._sender_thread.is_alive():
            raise TransportError(f"no response from {self.request.url} after closing the upload")
        if self._error is not None:
            if isinstance(self._error, TransportError):
                raise self._error
            raise TransportError(f"upload to {self.request.url} failed: {self._error}") from self._error
        return self._response
