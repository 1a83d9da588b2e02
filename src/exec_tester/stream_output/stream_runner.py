"""Repeat/interpolate/emit loop for one output channel."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from exec_tester.configuration.run_parameters import Channel, RunParameters
from exec_tester.interpolation import interpolate
from exec_tester.socket_client import SocketClientError, UnixSocketClient

from .output_sinks import ConsoleSinks, Sink

_LOGGER = logging.getLogger("exec_tester.stream")

SocketClientFactory = Callable[[str, float], UnixSocketClient]


class StopReason(str, Enum):
    """Why a stream runner stopped."""

    REPEAT_COUNT_REACHED = "repeat_count_reached"
    TIMEOUT_REACHED = "timeout_reached"
    SOCKET_ERROR = "socket_error"
    ABANDONED = "abandoned"
    FAILED = "failed"


@dataclass(frozen=True)
class StreamResult:
    """Outcome of one stream runner."""

    channel: Channel
    iterations: int
    stop_reason: StopReason
    error_message: str | None = None


def _default_socket_client(path: str, dial_timeout: float) -> UnixSocketClient:
    return UnixSocketClient(path, dial_timeout=dial_timeout)


class StreamRunner:
    """Drives repeated output for one channel until a stop condition is met.

    Iterations never overlap. The timeout is only checked between iterations, so
    a run may overshoot it by up to one interval.
    """

    def __init__(
        self,
        channel: Channel,
        params: RunParameters,
        sinks: ConsoleSinks,
        *,
        abandon: threading.Event | None = None,
        socket_client_factory: SocketClientFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if channel is Channel.SOCKET and params.socket is None:
            raise ValueError("The socket channel requires socket settings.")
        self._channel = channel
        self._params = params
        self._sinks = sinks
        self._abandon = abandon or threading.Event()
        self._socket_client_factory = socket_client_factory or _default_socket_client
        self._clock = clock
        self._client: UnixSocketClient | None = None

    @property
    def channel(self) -> Channel:
        return self._channel

    def run(self) -> StreamResult:
        params = self._params
        template = params.template_for(self._channel)
        client = self._open_socket_client()
        self._client = client
        counter = 0
        start = self._clock()
        try:
            while not self._abandon.is_set():
                interpolated = interpolate(
                    template,
                    params.interpolation_token,
                    params.interpolation_mode,
                    counter,
                    params.interpolation_seed,
                )
                if interpolated.warning:
                    _LOGGER.warning(interpolated.warning)

                try:
                    self._deliver(interpolated.text, client)
                except SocketClientError as exc:
                    if self._abandon.is_set():
                        return StreamResult(self._channel, counter, StopReason.ABANDONED)
                    _LOGGER.error(str(exc))
                    return StreamResult(
                        self._channel, counter + 1, StopReason.SOCKET_ERROR, str(exc)
                    )

                if self._abandon.wait(params.repeat_interval):
                    return StreamResult(self._channel, counter + 1, StopReason.ABANDONED)
                counter += 1

                if params.timeout and self._clock() - start > params.timeout:
                    _LOGGER.info(f"Timeout of '{params.timeout:g}' was reached")
                    return StreamResult(self._channel, counter, StopReason.TIMEOUT_REACHED)
                if not params.repeat_forever and counter >= params.repeat_count:
                    return StreamResult(self._channel, counter, StopReason.REPEAT_COUNT_REACHED)
            return StreamResult(self._channel, counter, StopReason.ABANDONED)
        finally:
            if client is not None:
                client.close()

    def abandon(self) -> None:
        """Stop at the next boundary and close the socket session, waking a blocked read."""
        self._abandon.set()
        client = self._client
        if client is not None:
            client.close()

    def _open_socket_client(self) -> UnixSocketClient | None:
        if self._channel is not Channel.SOCKET or self._params.socket is None:
            return None
        return self._socket_client_factory(
            self._params.socket.path, self._params.socket_dial_timeout
        )

    def _deliver(self, text: str, client: UnixSocketClient | None) -> None:
        if self._channel is Channel.STDOUT:
            self._emit(self._sinks.stdout, text)
        elif self._channel is Channel.STDERR:
            self._emit(self._sinks.stderr, text)
        elif client is not None and self._params.socket is not None:
            settings = self._params.socket
            if settings.send_text:
                client.send(text + "\n")
            if settings.read_enabled:
                self._emit(self._sinks.stdout, client.read_until(settings.exit_message))

    def _emit(self, sink: Sink, text: str) -> None:
        if not self._abandon.is_set():
            sink.write(text)
