"""
streamdrill client test suite

- Unit tests: request signing, request building, event framing
- Stream tests: keep-alive heartbeat, shutdown and summary, closed streams
- Client tests: every endpoint against a mocked HTTP session
"""
