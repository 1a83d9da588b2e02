"""Stream output exports."""

from .output_sinks import ConsoleSink, ConsoleSinks, Sink, console_sinks
from .stream_runner import SocketClientFactory, StopReason, StreamResult, StreamRunner

__all__ = [
    "ConsoleSink",
    "ConsoleSinks",
    "Sink",
    "console_sinks",
    "SocketClientFactory",
    "StopReason",
    "StreamResult",
    "StreamRunner",
]
