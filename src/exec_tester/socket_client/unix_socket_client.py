"""Resilient Unix domain socket client."""

from __future__ import annotations

import contextlib
import logging
import socket
import threading
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType

from exec_tester.configuration.run_parameters import SOCKET_DIAL_TIMEOUT_SECONDS

from .retry_backoff import ExponentialBackoff, retry_with_backoff

READ_BUFFER_SIZE = 1024

_LOGGER = logging.getLogger("exec_tester.socket")

BackoffFactory = Callable[[float], ExponentialBackoff]


class SocketClientError(Exception):
    """Base error for Unix socket client failures."""


class SocketConnectError(SocketClientError):
    """Raised when the socket cannot be dialed before the dial timeout elapses."""


class SocketWriteError(SocketClientError):
    """Raised when writing to the connected socket fails."""


class SocketReadError(SocketClientError):
    """Raised when reading fails and the single reconnect attempt also fails."""


@dataclass
class SocketSession:
    """One live connection. Replaced wholesale on every reconnect."""

    connection: socket.socket
    dial_timeout: float

    def close(self) -> None:
        # shutdown wakes a recv blocked on another thread, close alone does not.
        with contextlib.suppress(OSError):
            self.connection.shutdown(socket.SHUT_RDWR)
        self.connection.close()


def _default_backoff(dial_timeout: float) -> ExponentialBackoff:
    return ExponentialBackoff(max_elapsed_time=dial_timeout)


class UnixSocketClient:
    """Client for a single Unix domain socket owned by one stream runner.

    Dials retry with exponential backoff until `dial_timeout` has elapsed. A failed
    read triggers exactly one reconnect before it becomes terminal.

    WARNING: reading consumes data from the socket. Anything else connected to the
    same listener competes for it.
    """

    def __init__(
        self,
        path: str,
        *,
        dial_timeout: float = SOCKET_DIAL_TIMEOUT_SECONDS,
        backoff_factory: BackoffFactory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._path = path
        self._dial_timeout = dial_timeout
        self._backoff_factory = backoff_factory or _default_backoff
        self._logger = logger or _LOGGER
        self._session: SocketSession | None = None
        self._cancelled = threading.Event()

    @property
    def path(self) -> str:
        return self._path

    @property
    def connected(self) -> bool:
        return self._session is not None

    def connect(self) -> SocketSession:
        """Dial the socket, replacing any existing session.

        Raises:
          SocketConnectError: If no dial succeeds within the dial timeout, or the
            client was closed while retrying.
        """
        self._drop_session()
        try:
            connection = retry_with_backoff(
                self._dial_once,
                self._backoff_factory(self._dial_timeout),
                retry_on=(OSError,),
                cancelled=self._cancelled,
            )
        except OSError as exc:
            self._logger.error(f"Timed out connecting to '{self._path}'")
            raise SocketConnectError(
                f"Timed out connecting to '{self._path}' after {self._dial_timeout}s: {exc}"
            ) from exc
        if self._cancelled.is_set():
            connection.close()
            raise SocketConnectError(f"Client for '{self._path}' was closed while dialing")
        self._session = SocketSession(connection=connection, dial_timeout=self._dial_timeout)
        return self._session

    def send(self, text: str) -> None:
        """Write `text` once over the active session, connecting first if needed.

        Raises:
          SocketConnectError: If there was no session and dialing failed.
          SocketWriteError: If the write fails. The write is not retried.
        """
        session = self._require_session()
        try:
            session.connection.sendall(text.encode("utf-8"))
        except OSError as exc:
            raise SocketWriteError(f"Failed to write to '{self._path}': {exc}") from exc

    def read_until(self, exit_message: str = "") -> str:
        """Read until the received text contains `exit_message`.

        Received bytes accumulate per session, so an exit message split across
        reads is still found. An empty `exit_message` never matches and the loop
        only ends through the error path.

        Raises:
          SocketConnectError: If there was no session and dialing failed.
          SocketReadError: If a read fails and the reconnect that follows fails too, or
            the client is closed while reading.
        """
        session = self._require_session()
        received = bytearray()
        while True:
            failure = self._receive_into(session, received)
            if failure is not None:
                if self._cancelled.is_set():
                    raise SocketReadError(f"Client for '{self._path}' was closed while reading")
                self._logger.error(failure)
                self._logger.error(f"Retrying connection to '{self._path}'")
                try:
                    session = self.connect()
                except SocketConnectError as exc:
                    raise SocketReadError(
                        f"Reached timeout of '{self._dial_timeout}' waiting for socket "
                        f"'{self._path}'. Error from socket: {failure}. {exc}"
                    ) from exc
                received.clear()
                continue

            response = received.decode("utf-8", errors="replace")
            if exit_message and exit_message in response:
                self._logger.info(
                    f"Received exit msg '{exit_message}' from '{self._path}'. Stopping read."
                )
                return response

    def close(self) -> None:
        """Stop any in-flight dial retries and close the session. Safe to call twice."""
        self._cancelled.set()
        self._drop_session()

    def __enter__(self) -> UnixSocketClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _require_session(self) -> SocketSession:
        if self._session is None:
            return self.connect()
        return self._session

    def _receive_into(self, session: SocketSession, received: bytearray) -> str | None:
        try:
            chunk = session.connection.recv(READ_BUFFER_SIZE)
        except OSError as exc:
            return f"Unknown error from '{self._path}': '{exc}'"
        if not chunk:
            return f"'{self._path}' returned 'EOF'"
        received.extend(chunk)
        self._logger.info(
            f"Received from '{self._path}': '{chunk.decode('utf-8', errors='replace')}'"
        )
        return None

    def _dial_once(self) -> socket.socket:
        connection = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        connection.settimeout(self._dial_timeout)
        try:
            connection.connect(self._path)
        except OSError as exc:
            connection.close()
            self._logger.warning(
                f"Failed to connect to '{self._path}'. Error: '{exc}'. Retrying..."
            )
            raise
        connection.settimeout(None)
        return connection

    def _drop_session(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.close()
