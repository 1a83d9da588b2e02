"""Console sinks for channel output."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import Protocol, TextIO

import click

from exec_tester.configuration.run_parameters import OutputFormat
from exec_tester.console_logging import render_line


class Sink(Protocol):  # pylint: disable=too-few-public-methods
    """Destination for one line of channel output."""

    def write(self, text: str) -> None: ...


class ConsoleSink:  # pylint: disable=too-few-public-methods
    """Writes formatted lines to a text stream and flushes after each one."""

    def __init__(self, stream: TextIO, output_format: OutputFormat) -> None:
        self._stream = stream
        self._output_format = output_format
        self._lock = threading.Lock()

    def write(self, text: str) -> None:
        line = render_line(text, self._output_format)
        with self._lock:
            click.echo(line, file=self._stream)
            self._stream.flush()


@dataclass(frozen=True)
class ConsoleSinks:
    """The stdout/stderr sink pair handed to stream runners."""

    stdout: Sink
    stderr: Sink


def console_sinks(output_format: OutputFormat) -> ConsoleSinks:
    """Build sinks bound to the process's current stdout and stderr."""
    return ConsoleSinks(
        stdout=ConsoleSink(sys.stdout, output_format),
        stderr=ConsoleSink(sys.stderr, output_format),
    )
