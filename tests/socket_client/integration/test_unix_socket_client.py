"""Unix socket client tests against a real listener."""

from __future__ import annotations

import socket
import tempfile
import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from exec_tester.socket_client import (
    SocketConnectError,
    SocketReadError,
    UnixSocketClient,
)

Handler = Callable[[socket.socket], None]


@pytest.fixture
def socket_path() -> Iterator[Path]:
    # AF_UNIX paths are limited to ~100 bytes, pytest's tmp_path can be longer.
    with tempfile.TemporaryDirectory(dir="/tmp", prefix="et-") as directory:
        yield Path(directory) / "test.sock"


class _Listener:
    """Accepts one connection per handler, in order, on a background thread."""

    def __init__(self, path: Path, handlers: list[Handler]) -> None:
        self.path = path
        self.received: list[bytes] = []
        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._server.bind(str(path))
        self._server.listen()
        self._handlers = handlers
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        for handler in self._handlers:
            connection, _ = self._server.accept()
            with connection:
                handler(connection)

    def stop(self) -> None:
        self._server.close()
        self.path.unlink(missing_ok=True)

    def join(self) -> None:
        self._thread.join(timeout=5)


def test_send_and_read_until_exit_message(socket_path: Path) -> None:
    received: list[bytes] = []

    def echo(connection: socket.socket) -> None:
        received.append(connection.recv(1024))
        connection.sendall(b"pong bye")
        connection.recv(1024)

    listener = _Listener(socket_path, [echo])
    with UnixSocketClient(str(socket_path), dial_timeout=1.0) as client:
        client.send("ping\n")
        response = client.read_until("bye")
    listener.join()
    listener.stop()

    assert received == [b"ping\n"]
    assert response == "pong bye"


def test_exit_message_split_across_reads_is_found(socket_path: Path) -> None:
    def split_reply(connection: socket.socket) -> None:
        connection.sendall(b"first b")
        time.sleep(0.1)
        connection.sendall(b"ye")
        connection.recv(1024)

    listener = _Listener(socket_path, [split_reply])
    with UnixSocketClient(str(socket_path), dial_timeout=1.0) as client:
        response = client.read_until("bye")
    listener.join()
    listener.stop()

    assert response == "first bye"


def test_eof_triggers_single_reconnect_with_fresh_buffer(socket_path: Path) -> None:
    def hang_up(connection: socket.socket) -> None:
        connection.sendall(b"partial ")

    def reply(connection: socket.socket) -> None:
        connection.sendall(b"bye")
        connection.recv(1024)

    listener = _Listener(socket_path, [hang_up, reply])
    with UnixSocketClient(str(socket_path), dial_timeout=1.0) as client:
        response = client.read_until("bye")
    listener.join()
    listener.stop()

    assert response == "bye"


def test_read_fails_when_reconnect_fails(socket_path: Path) -> None:
    listener: _Listener

    def hang_up_for_good(connection: socket.socket) -> None:
        listener.stop()

    listener = _Listener(socket_path, [hang_up_for_good])
    client = UnixSocketClient(str(socket_path), dial_timeout=0.2)
    client.connect()

    with pytest.raises(SocketReadError, match="Reached timeout of '0.2'"):
        client.read_until("bye")
    client.close()
    listener.join()


def test_connect_times_out_when_nothing_listens(socket_path: Path) -> None:
    client = UnixSocketClient(str(socket_path), dial_timeout=0.2)

    started = time.monotonic()
    with pytest.raises(SocketConnectError, match="Timed out connecting"):
        client.connect()

    assert time.monotonic() - started < 2.0
    assert client.connected is False


def test_close_is_idempotent(socket_path: Path) -> None:
    def idle(connection: socket.socket) -> None:
        connection.recv(1024)

    listener = _Listener(socket_path, [idle])
    client = UnixSocketClient(str(socket_path), dial_timeout=1.0)
    client.connect()
    assert client.connected is True

    client.close()
    client.close()

    assert client.connected is False
    listener.join()
    listener.stop()


def test_close_from_another_thread_wakes_blocked_read(socket_path: Path) -> None:
    release = threading.Event()

    def silent(connection: socket.socket) -> None:
        release.wait(5)

    listener = _Listener(socket_path, [silent])
    client = UnixSocketClient(str(socket_path), dial_timeout=1.0)
    client.connect()
    errors: list[Exception] = []

    def read() -> None:
        try:
            client.read_until("bye")
        except SocketReadError as exc:
            errors.append(exc)

    reader = threading.Thread(target=read)
    reader.start()
    time.sleep(0.1)

    started = time.monotonic()
    client.close()
    reader.join(timeout=5)

    assert not reader.is_alive()
    assert time.monotonic() - started < 1.0
    assert len(errors) == 1
    assert "closed while reading" in str(errors[0])
    release.set()
    listener.join()
    listener.stop()
