"""Console logging exports."""

from .log_formatting import (
    PACKAGE_LOGGER_NAME,
    ConsoleFormatter,
    configure_logging,
    render_line,
)

__all__ = ["PACKAGE_LOGGER_NAME", "ConsoleFormatter", "configure_logging", "render_line"]
