"""
Update Stream - long-lived streaming of trend events

Events are written as newline-delimited JSON on a chunked upload. A
keep-alive monitor thread writes a bare newline whenever the stream has been
idle for a whole heartbeat interval, so intermediaries do not drop the
connection. Closing the stream returns the server's tally of the upload.
"""

import logging
import threading
import time
from typing import Callable, Optional, Sequence

from .constants import DEFAULT_HEARTBEAT_INTERVAL, HEARTBEAT_FRAME
from .exceptions import StreamClosedError
from .models import StreamSummary, Timestamp, TrendEvent
from .transport import read_json

logger = logging.getLogger(__name__)


class UpdateStream:
    """
    A streaming connection for trend updates.

    Usage:
        stream = client.stream()
        stream.update("searches", ["python"], value=2.0)
        updates, rate = stream.done()

    The stream is Open until done() is called and cannot be reopened.
    Event writes and keep-alive writes share one lock, so frames never
    interleave on the wire.
    """

    def __init__(
        self,
        channel,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the stream and start the keep-alive monitor.

        Args:
            channel: Outbound channel with send(bytes) and close() -> response
            heartbeat_interval: Seconds between keep-alive checks
            clock: Monotonic clock in seconds
        """
        self._channel = channel
        self.heartbeat_interval = heartbeat_interval
        self._clock = clock

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._last_activity = clock()
        self._alive = True
        self._closed = False

        self._heartbeat_thread = threading.Thread(
            target=self._keep_alive,
            name="streamdrill-keepalive",
            daemon=True
        )
        self._heartbeat_thread.start()

    @property
    def alive(self) -> bool:
        """False once a write on the channel has failed."""
        with self._lock:
            return self._alive

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def _keep_alive(self):
        """Keep-alive monitor thread."""
        logger.info(f"setting up keepalive monitor for {self._describe()}")

        while not self._stop_event.wait(self.heartbeat_interval):
            with self._lock:
                if self._closed:
                    break
                if self._clock() - self._last_activity <= self.heartbeat_interval:
                    continue
                self._last_activity = self._clock()
                try:
                    self._channel.send(HEARTBEAT_FRAME)
                except Exception as e:
                    logger.warning(f"keepalive write failed, marking stream dead: {e}")
                    self._alive = False
                    break

        logger.info(f"keepalive monitor exited: {self._describe()}")

    def _describe(self) -> str:
        request = getattr(self._channel, 'request', None)
        return getattr(request, 'url', repr(self._channel))

    def update(
        self,
        trend: str,
        keys: Sequence[str],
        value: Optional[float] = None,
        ts: Optional[Timestamp] = None
    ):
        """
        Update an item.

        Args:
            trend: Name of the trend
            keys: Keys of the item
            value: A predefined value to use (optional)
            ts: Time stamp of the event, datetime or epoch milliseconds (optional)

        Raises:
            TypeError: If keys is a plain string
            ValueError: If keys is empty
            StreamClosedError: If done() has been called
            TransportError: If the upload has failed
        """
        self.send(TrendEvent.of(trend, keys, value=value, ts=ts))

    def send(self, event: TrendEvent):
        """
        Write a prepared event as one frame.

        Raises:
            StreamClosedError: If done() has been called
            TransportError: If the upload has failed
        """
        frame = event.to_line()
        with self._lock:
            if self._closed:
                raise StreamClosedError()
            try:
                self._channel.send(frame)
            except Exception:
                self._alive = False
                raise
            self._last_activity = self._clock()

    def done(self) -> StreamSummary:
        """
        Close the stream.

        Stops the keep-alive monitor, closes the upload and reads the
        server's summary.

        Returns:
            StreamSummary of (updates, rate in updates/s)

        Raises:
            StreamClosedError: If the stream was already closed
            TransportError: If the upload failed
            UnexpectedStatusError: If the server rejected the upload
        """
        with self._lock:
            if self._closed:
                raise StreamClosedError()
            self._closed = True

        try:
            self._stop_event.set()
            self._heartbeat_thread.join(timeout=self.heartbeat_interval)
        except Exception:
            logger.debug("ignoring failure while stopping keepalive monitor", exc_info=True)

        response = self._channel.close()
        result = read_json(response)
        summary = StreamSummary(int(result["updates"]), float(result["rate"]))

        logger.info(f"stream closed: {summary.updates} updates, {summary.rate:.1f} updates/s")
        return summary

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.closed:
            return
        if exc_type is None:
            self.done()
            return
        try:
            self.done()
        except Exception as e:
            logger.warning(f"failed to close stream after {exc_type.__name__}: {e}")
