"""One-shot cancellation driven by interrupt and termination signals."""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable, Iterable
from types import FrameType, TracebackType
from typing import Any, Protocol

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)

_Handler = Callable[[int, FrameType | None], Any] | int | None


class CancellationToken(Protocol):
    """Read side of a one-shot cancellation event. `threading.Event` satisfies it."""

    def is_set(self) -> bool: ...

    def wait(self, timeout: float | None = None) -> bool: ...


class SignalCancellation:
    """Sets a one-shot event when the process receives SIGINT or SIGTERM.

    Handlers are installed on enter and the previous handlers restored on exit.
    Python only delivers signals to the main thread, so outside it no handlers are
    installed and the token never fires. Repeated signals have no further effect.
    """

    def __init__(self, signals: Iterable[signal.Signals] = DEFAULT_SIGNALS) -> None:
        self._signals = tuple(signals)
        self._event = threading.Event()
        self._previous: dict[signal.Signals, _Handler] = {}
        self.received_signal: signal.Signals | None = None

    def __enter__(self) -> SignalCancellation:
        if threading.current_thread() is threading.main_thread():
            for signum in self._signals:
                self._previous[signum] = signal.signal(signum, self._handle)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        for signum, handler in self._previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        if not self._event.is_set():
            self.received_signal = signal.Signals(signum)
        self._event.set()
