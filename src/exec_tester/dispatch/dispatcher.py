"""Concurrent dispatch of stream runners with signal-driven graceful shutdown."""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from exec_tester.configuration.parameter_validation import validate_parameter_sets
from exec_tester.configuration.run_parameters import RunParameters
from exec_tester.stream_output import (
    ConsoleSinks,
    SocketClientFactory,
    StopReason,
    StreamResult,
    StreamRunner,
    console_sinks,
)

from .cancellation import CancellationToken, SignalCancellation

_LOGGER = logging.getLogger("exec_tester.dispatch")

_POLL_INTERVAL_SECONDS = 0.05
_ABANDON_JOIN_SECONDS = 1.0


@dataclass(frozen=True)
class DispatchOutcome:
    """Exit decision plus whatever the stream runners reported before it was made."""

    exit_code: int
    results: tuple[StreamResult, ...]
    cancelled: bool


class Dispatcher:
    """Runs one stream runner per active channel and decides when the process may exit."""

    def __init__(
        self,
        sinks: ConsoleSinks | None = None,
        *,
        cancellation: CancellationToken | None = None,
        socket_client_factory: SocketClientFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sinks = sinks
        self._cancellation = cancellation
        self._socket_client_factory = socket_client_factory
        self._clock = clock

    def dispatch(self, params: RunParameters) -> DispatchOutcome:
        """Run every active channel, racing completion against cancellation.

        If cancellation wins, runners keep producing output for up to
        ``params.sigterm_grace_period`` seconds; whatever is still running after
        that is abandoned: its socket session is closed and its thread gets a short
        join, never the full run.

        Raises:
          ParameterSetValidationError: Before any runner starts, if the parameters
            request no output or an unusable socket channel.
        """
        validate_parameter_sets(params)
        sinks = self._sinks or console_sinks(params.output_format)
        channels = params.active_channels
        abandon = threading.Event()
        completions: queue.Queue[StreamResult] = queue.Queue()
        results: list[StreamResult] = []
        started: list[tuple[StreamRunner, threading.Thread]] = []

        with self._cancellation_scope() as cancellation:
            for channel in channels:
                runner = StreamRunner(
                    channel,
                    params,
                    sinks,
                    abandon=abandon,
                    socket_client_factory=self._socket_client_factory,
                )
                thread = threading.Thread(
                    target=_run_and_report,
                    args=(runner, completions),
                    name=f"stream-{channel.value}",
                    daemon=True,
                )
                thread.start()
                started.append((runner, thread))

            self._collect(completions, results, len(channels), stop=cancellation.is_set)
            cancelled = len(results) < len(channels)
            if cancelled:
                grace = params.sigterm_grace_period
                _LOGGER.info(
                    f"Caught signal. Starting Sigterm timer to wait for '{grace:g}' seconds "
                    "to shutdown. Output to console will continue while this timer is in effect"
                )
                deadline = self._clock() + grace
                self._collect(
                    completions,
                    results,
                    len(channels),
                    stop=lambda: self._clock() >= deadline,
                )
            abandon.set()
            self._abandon_all(started)

        exit_code = params.exit_code if params.exit_code is not None else 0
        return DispatchOutcome(exit_code=exit_code, results=tuple(results), cancelled=cancelled)

    def _abandon_all(self, started: list[tuple[StreamRunner, threading.Thread]]) -> None:
        for runner, _ in started:
            runner.abandon()
        deadline = self._clock() + _ABANDON_JOIN_SECONDS
        for runner, thread in started:
            thread.join(timeout=max(0.0, deadline - self._clock()))
            if thread.is_alive():
                _LOGGER.warning(f"Stream '{runner.channel.value}' did not stop after abandon")

    @contextlib.contextmanager
    def _cancellation_scope(self) -> Iterator[CancellationToken]:
        if self._cancellation is not None:
            yield self._cancellation
            return
        with SignalCancellation() as cancellation:
            yield cancellation

    @staticmethod
    def _collect(
        completions: queue.Queue[StreamResult],
        results: list[StreamResult],
        expected: int,
        *,
        stop: Callable[[], bool],
    ) -> None:
        while len(results) < expected and not stop():
            try:
                results.append(completions.get(timeout=_POLL_INTERVAL_SECONDS))
            except queue.Empty:
                continue


def _run_and_report(runner: StreamRunner, completions: queue.Queue[StreamResult]) -> None:
    try:
        result = runner.run()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        _LOGGER.exception(f"Stream '{runner.channel.value}' failed")
        result = StreamResult(runner.channel, 0, StopReason.FAILED, str(exc))
    completions.put(result)


def dispatch(
    params: RunParameters,
    *,
    sinks: ConsoleSinks | None = None,
    cancellation: CancellationToken | None = None,
) -> DispatchOutcome:
    """Validate `params`, run all active channels and return the exit decision."""
    return Dispatcher(sinks, cancellation=cancellation).dispatch(params)
