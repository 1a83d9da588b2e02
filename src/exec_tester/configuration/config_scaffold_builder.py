"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = ".exectester.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Configuration template for exec-tester (et).
# Every key is optional. Command-line flags and ET_* environment variables
# (for example ET_STDOUT or ET_SOCKET_SEND) take precedence over this file.
# Uncomment only the keys your run needs.

# Text to write on each iteration. An empty value disables the channel.
# stdout: "stdout counter: __I__"
# stderr: "stderr counter: __I__"

# Unix socket channel. When socket is set, socket_send and/or read_socket is required.
# socket: "/tmp/exectester.sock"
# socket_send: "hello __I__"
# read_socket: false
# socket_exit_msg: "bye"

# Repetition and timing, in seconds. timeout 0 means no timeout.
# repeat: 1
# repeat_forever: false
# repeat_interval: 1
# timeout: 0
# sigterm_timeout: 0

# Interpolation of interpolate_key: int_counter or string.
# interpolator: "int_counter"
# interpolate_key: "__I__"
# interpolate_val: ""

# Console rendering: structured (JSON lines) or human_readable.
# output_format: "structured"

# Process exit code once output is done.
# exitcode: 0
"""


def build_placeholder_configuration() -> str:
    """Build a YAML configuration template with every option commented out."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
