"""
Configuration for the streamdrill client library
"""

from dataclasses import dataclass
import os

from .constants import (
    DEFAULT_API_KEY,
    DEFAULT_API_SECRET,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_HEARTBEAT_INTERVAL,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_SERVER_URL,
    USER_AGENT,
)


@dataclass
class ClientConfig:
    """
    Configuration for StreamDrillClient.

    Attributes:
        server_url: Base URL of the streamdrill server
        api_key: API key sent in the Authorization header
        api_secret: Secret used to sign requests

        # HTTP config
        connect_timeout: Seconds to wait for a connection
        read_timeout: Seconds to wait for response data
        verify_ssl: Verify SSL certificates
        user_agent: User-Agent header value

        # Streaming config
        heartbeat_interval: Idle seconds before a keep-alive newline is sent
        chunk_size: Maximum size of a chunk on the streaming upload
    """

    # Authentication
    server_url: str = DEFAULT_SERVER_URL
    api_key: str = DEFAULT_API_KEY
    api_secret: str = DEFAULT_API_SECRET

    # HTTP
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    verify_ssl: bool = True
    user_agent: str = USER_AGENT

    # Streaming
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_env(cls) -> 'ClientConfig':
        """
        Create configuration from environment variables.

        Environment variables:
            STREAMDRILL_SERVER_URL: Server URL
            STREAMDRILL_API_KEY: API key
            STREAMDRILL_API_SECRET: API secret
            STREAMDRILL_CONNECT_TIMEOUT: Connect timeout in seconds
            STREAMDRILL_READ_TIMEOUT: Read timeout in seconds
            STREAMDRILL_HEARTBEAT_INTERVAL: Heartbeat interval in seconds
            STREAMDRILL_VERIFY_SSL: Set to 'false' to skip certificate checks
        """
        return cls(
            server_url=os.getenv('STREAMDRILL_SERVER_URL', DEFAULT_SERVER_URL),
            api_key=os.getenv('STREAMDRILL_API_KEY', DEFAULT_API_KEY),
            api_secret=os.getenv('STREAMDRILL_API_SECRET', DEFAULT_API_SECRET),
            connect_timeout=float(os.getenv('STREAMDRILL_CONNECT_TIMEOUT', str(DEFAULT_CONNECT_TIMEOUT))),
            read_timeout=float(os.getenv('STREAMDRILL_READ_TIMEOUT', str(DEFAULT_READ_TIMEOUT))),
            heartbeat_interval=float(os.getenv('STREAMDRILL_HEARTBEAT_INTERVAL', str(DEFAULT_HEARTBEAT_INTERVAL))),
            verify_ssl=os.getenv('STREAMDRILL_VERIFY_SSL', 'true').lower() != 'false',
        )

    def validate(self) -> tuple[bool, str]:
        """
        Validate configuration.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not self.server_url:
            return False, "server_url is required"

        if not self.server_url.startswith(("http://", "https://")):
            return False, "server_url must start with http:// or https://"

        if not self.api_key:
            return False, "api_key is required"

        if not self.api_secret:
            return False, "api_secret is required"

        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            return False, "timeouts must be positive"

        if self.heartbeat_interval <= 0:
            return False, "heartbeat_interval must be positive"

        if self.chunk_size <= 0:
            return False, "chunk_size must be positive"

        return True, ""
