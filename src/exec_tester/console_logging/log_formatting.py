"""Console formatting shared by log records and channel output."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

from exec_tester.configuration.run_parameters import OutputFormat

PACKAGE_LOGGER_NAME = "exec_tester"

_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}


def render_line(
    message: str,
    output_format: OutputFormat,
    *,
    level: str = "INFO",
    created: datetime | None = None,
) -> str:
    """Render one console line.

    ``structured`` produces a JSON object with ``time``, ``level`` and ``msg``;
    ``human_readable`` is the bare message.
    """
    if output_format is OutputFormat.HUMAN_READABLE:
        return message
    timestamp = created or datetime.now(UTC)
    return json.dumps(
        {
            "time": timestamp.isoformat(),
            "level": _LEVEL_NAMES.get(level, level),
            "msg": message,
        },
        ensure_ascii=False,
    )


class ConsoleFormatter(logging.Formatter):
    """Logging formatter that renders records with `render_line`."""

    def __init__(self, output_format: OutputFormat) -> None:
        super().__init__()
        self.output_format = output_format

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return render_line(
            message,
            self.output_format,
            level=record.levelname,
            created=datetime.fromtimestamp(record.created, tz=UTC),
        )


class _ConsoleHandler(logging.StreamHandler):
    """Marker type so repeated configuration replaces, not stacks, handlers."""


def configure_logging(
    output_format: OutputFormat = OutputFormat.STRUCTURED,
    *,
    stream: TextIO | None = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Install the console handler on the package logger and return that logger."""
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, _ConsoleHandler):
            logger.removeHandler(handler)
            handler.close()
    handler = _ConsoleHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(ConsoleFormatter(output_format))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
