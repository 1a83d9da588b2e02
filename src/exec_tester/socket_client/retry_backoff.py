"""Exponential backoff with jitter for retrying socket dials."""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")

DEFAULT_INITIAL_INTERVAL = 1.0
DEFAULT_MULTIPLIER = 1.5
DEFAULT_RANDOMIZATION_FACTOR = 0.5
DEFAULT_MAX_INTERVAL = 60.0


class ExponentialBackoff:  # pylint: disable=too-many-instance-attributes
    """Randomized exponential backoff bounded by a total elapsed time.

    Each interval is drawn from ``current * (1 +/- randomization_factor)`` and the
    current interval grows by `multiplier` up to `max_interval`. Once the elapsed
    time plus the next interval would exceed `max_elapsed_time`, `next_backoff`
    returns ``None``. A `max_elapsed_time` of zero never stops.
    """

    def __init__(
        self,
        *,
        max_elapsed_time: float,
        initial_interval: float = DEFAULT_INITIAL_INTERVAL,
        multiplier: float = DEFAULT_MULTIPLIER,
        randomization_factor: float = DEFAULT_RANDOMIZATION_FACTOR,
        max_interval: float = DEFAULT_MAX_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.randomization_factor = randomization_factor
        self.max_interval = max_interval
        self.max_elapsed_time = max_elapsed_time
        self._clock = clock
        self._rng = rng or random.Random()
        self._current_interval = initial_interval
        self._start = clock()

    def reset(self) -> None:
        """Restart the schedule and the elapsed-time budget."""
        self._current_interval = self.initial_interval
        self._start = self._clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._start

    def next_backoff(self) -> float | None:
        """Return the next delay in seconds, or None once the budget is spent."""
        elapsed = self.elapsed
        delta = self.randomization_factor * self._current_interval
        delay = self._rng.uniform(self._current_interval - delta, self._current_interval + delta)
        self._current_interval = min(self._current_interval * self.multiplier, self.max_interval)
        if self.max_elapsed_time and elapsed + delay > self.max_elapsed_time:
            return None
        return delay


def retry_with_backoff(
    operation: Callable[[], T],
    backoff: ExponentialBackoff,
    *,
    retry_on: tuple[type[BaseException], ...],
    cancelled: threading.Event | None = None,
) -> T:
    """Call `operation` until it succeeds, sleeping per `backoff` between failures.

    The last error is re-raised once the backoff budget is spent or `cancelled`
    is set while waiting.
    """
    stop = cancelled or threading.Event()
    backoff.reset()
    while True:
        try:
            return operation()
        except retry_on:
            delay = backoff.next_backoff()
            if delay is None or stop.wait(delay):
                raise
