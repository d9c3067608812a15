"""
Tests for UpdateStream: framing, keep-alive heartbeat and shutdown.
"""

import time
from unittest import TestCase

from streamdrill_client.channel import ChunkedUploadChannel
from streamdrill_client.exceptions import StreamClosedError, TransportError, UnexpectedStatusError
from streamdrill_client.models import TrendEvent
from streamdrill_client.stream import UpdateStream
from streamdrill_client.transport import SignedRequest

from .fakes import FakeClock, RecordingChannel, StreamingSession, json_response, wait_until


class UpdateStreamFramingTest(TestCase):
    """Test event frames written by UpdateStream."""

    def setUp(self):
        self.channel = RecordingChannel('{"updates": 3, "rate": 1.5}')
        self.stream = UpdateStream(self.channel, heartbeat_interval=60.0)

    def tearDown(self):
        if not self.stream.closed:
            self.stream.done()

    def test_frames_in_call_order(self):
        self.stream.update("t1", ["a", "b"])
        self.stream.update("t1", ["a", "b"], value=3.5)
        self.stream.update("t1", ["a", "b"], value=3.5, ts=1000)

        self.assertEqual(self.channel.frames, [
            b'{"t":"t1","k":["a","b"]}\n',
            b'{"t":"t1","k":["a","b"],"v":3.5}\n',
            b'{"t":"t1","k":["a","b"],"v":3.5,"ts":1000}\n',
        ])

    def test_send_prepared_event(self):
        self.stream.send(TrendEvent.of("t2", ["x"], ts=5))

        self.assertEqual(self.channel.frames, [b'{"t":"t2","k":["x"],"ts":5}\n'])

    def test_empty_keys_rejected(self):
        with self.assertRaises(ValueError):
            self.stream.update("t1", [])

        self.assertEqual(self.channel.frames, [])

    def test_string_keys_rejected(self):
        with self.assertRaises(TypeError):
            self.stream.update("t1", "abc")

        self.assertEqual(self.channel.frames, [])

    def test_done_returns_summary(self):
        for i in range(3):
            self.stream.update("t1", [str(i)])

        updates, rate = self.stream.done()

        self.assertEqual(updates, 3)
        self.assertEqual(rate, 1.5)
        self.assertTrue(self.channel.closed)

    def test_update_after_done_fails(self):
        self.stream.done()

        with self.assertRaises(StreamClosedError):
            self.stream.update("t1", ["a"])

        self.assertEqual(self.channel.frames, [])

    def test_done_twice_fails(self):
        self.stream.done()

        with self.assertRaises(StreamClosedError):
            self.stream.done()

    def test_done_stops_heartbeat_before_closing(self):
        self.stream.done()

        self.assertFalse(self.stream._heartbeat_thread.is_alive())
        self.assertEqual(self.channel.sends_after_close, 0)

    def test_context_manager_closes(self):
        with UpdateStream(RecordingChannel(), heartbeat_interval=60.0) as stream:
            stream.update("t1", ["a"])

        self.assertTrue(stream.closed)

    def test_context_manager_keeps_body_exception(self):
        channel = RecordingChannel()

        def broken_close():
            raise TransportError("connection reset")
        channel.close = broken_close

        with self.assertRaises(KeyError):
            with UpdateStream(channel, heartbeat_interval=60.0) as stream:
                stream.update("t1", ["a"])
                raise KeyError("caller bug")

        self.assertTrue(stream.closed)

    def test_context_manager_raises_close_failure(self):
        channel = RecordingChannel()

        def broken_close():
            raise TransportError("connection reset")
        channel.close = broken_close

        with self.assertRaises(TransportError):
            with UpdateStream(channel, heartbeat_interval=60.0) as stream:
                stream.update("t1", ["a"])

    def test_failed_write_marks_stream_dead(self):
        channel = RecordingChannel(fail_on=b'{"t":"t1","k":["boom"]}\n')
        stream = UpdateStream(channel, heartbeat_interval=60.0)

        with self.assertRaises(OSError):
            stream.update("t1", ["boom"])

        self.assertFalse(stream.alive)
        stream.done()


class UpdateStreamHeartbeatTest(TestCase):
    """Test the keep-alive monitor."""

    def test_idle_stream_gets_one_heartbeat_per_window(self):
        clock = FakeClock()
        channel = RecordingChannel()
        stream = UpdateStream(channel, heartbeat_interval=0.01, clock=clock)

        # not idle for a full interval yet
        time.sleep(0.1)
        self.assertEqual(channel.heartbeats(), 0)

        clock.now = 10.0
        self.assertTrue(wait_until(lambda: channel.heartbeats() == 1))

        # the heartbeat reset the idle timer
        time.sleep(0.1)
        self.assertEqual(channel.heartbeats(), 1)

        clock.now = 20.0
        self.assertTrue(wait_until(lambda: channel.heartbeats() == 2))

        stream.done()
        self.assertEqual(channel.frames, [b"\n", b"\n"])

    def test_updates_keep_stream_active(self):
        channel = RecordingChannel()
        stream = UpdateStream(channel, heartbeat_interval=0.2)

        deadline = time.monotonic() + 0.6
        while time.monotonic() < deadline:
            stream.update("t1", ["a"])
            time.sleep(0.02)

        stream.done()
        self.assertEqual(channel.heartbeats(), 0)

    def test_heartbeat_on_real_clock(self):
        channel = RecordingChannel()
        stream = UpdateStream(channel, heartbeat_interval=0.05)

        self.assertTrue(wait_until(lambda: channel.heartbeats() >= 1))
        stream.done()

    def test_heartbeat_failure_marks_dead_without_raising(self):
        clock = FakeClock()
        channel = RecordingChannel(fail_on=b"\n")
        stream = UpdateStream(channel, heartbeat_interval=0.01, clock=clock)

        clock.now = 10.0
        self.assertTrue(wait_until(lambda: not stream.alive))
        self.assertTrue(wait_until(lambda: not stream._heartbeat_thread.is_alive()))

        # the caller still owns the close sequence
        self.assertEqual(stream.done().updates, 0)

    def test_closed_stream_gets_no_heartbeat(self):
        clock = FakeClock()
        channel = RecordingChannel()
        stream = UpdateStream(channel, heartbeat_interval=0.01, clock=clock)
        stream.done()

        clock.now = 10.0
        time.sleep(0.05)
        self.assertEqual(channel.frames, [])


class UpdateStreamServerErrorTest(TestCase):

    def test_rejected_upload(self):
        channel = RecordingChannel()
        channel.close = lambda: json_response("denied", status_code=403)
        stream = UpdateStream(channel, heartbeat_interval=60.0)

        with self.assertRaises(UnexpectedStatusError) as ctx:
            stream.done()

        self.assertEqual(ctx.exception.status_code, 403)


class UpdateStreamStalledUploadTest(TestCase):
    """Test a stream whose server stops reading the upload."""

    def test_update_fails_when_upload_stalls(self):
        session = StreamingSession()
        session.reading.clear()
        request = SignedRequest("POST", "http://trends.example.com/1/update", {}, (5.0, 2.0))
        channel = ChunkedUploadChannel(session, request, send_timeout=0.3)
        stream = UpdateStream(channel, heartbeat_interval=60.0)

        stream.update("t1", ["a"])
        with self.assertRaises(TransportError):
            stream.update("t1", ["b"])

        self.assertFalse(stream.alive)
        with self.assertRaises(TransportError):
            stream.update("t1", ["c"])

        session.reading.set()
        with self.assertRaises(TransportError):
            stream.done()
        self.assertEqual(session.chunks, [b'{"t":"t1","k":["a"]}\n'])
