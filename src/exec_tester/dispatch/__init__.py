"""Dispatch exports."""

from .cancellation import CancellationToken, SignalCancellation
from .dispatcher import DispatchOutcome, Dispatcher, dispatch

__all__ = [
    "CancellationToken",
    "SignalCancellation",
    "DispatchOutcome",
    "Dispatcher",
    "dispatch",
]
