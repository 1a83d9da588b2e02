"""Unix socket client exports."""

from .retry_backoff import ExponentialBackoff, retry_with_backoff
from .unix_socket_client import (
    READ_BUFFER_SIZE,
    SocketClientError,
    SocketConnectError,
    SocketReadError,
    SocketSession,
    SocketWriteError,
    UnixSocketClient,
)

__all__ = [
    "ExponentialBackoff",
    "retry_with_backoff",
    "READ_BUFFER_SIZE",
    "SocketClientError",
    "SocketConnectError",
    "SocketReadError",
    "SocketSession",
    "SocketWriteError",
    "UnixSocketClient",
]
