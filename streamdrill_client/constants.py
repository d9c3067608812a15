"""
Constants for the streamdrill client library.
"""

# HTTP headers
HEADER_AUTHORIZATION = "Authorization"
HEADER_DATE = "Date"
HEADER_CONTENT_TYPE = "Content-Type"

# Authorization schemes
AUTH_SCHEME_SIGNED = "TPK"
AUTH_SCHEME_TOKEN = "APITOKEN"

# Demo credentials of a stock streamdrill instance
DEFAULT_SERVER_URL = "http://localhost:9669"
DEFAULT_API_KEY = "f9aaf865-b89a-444d-9070-38ec6666e539"
DEFAULT_API_SECRET = "9e13e4ac-ad93-4c8f-a896-d5a937b84c8a"

# Timeouts in seconds
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 60.0

# Streaming
DEFAULT_HEARTBEAT_INTERVAL = 10.0
DEFAULT_CHUNK_SIZE = 8192
HEARTBEAT_FRAME = b"\n"
DEFAULT_MAX_PENDING_FRAMES = 1

USER_AGENT = "streamdrill-client/0.1.0"
