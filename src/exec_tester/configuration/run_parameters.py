"""Run parameter entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_INTERPOLATION_TOKEN = "__I__"
SOCKET_DIAL_TIMEOUT_SECONDS = 2.0


class Channel(str, Enum):
    """Output destinations a run can write to."""

    STDOUT = "stdout"
    STDERR = "stderr"
    SOCKET = "socket"


class InterpolationMode(str, Enum):
    """How the interpolation token is replaced on each iteration."""

    INT_COUNTER = "int_counter"
    STRING = "string"


class OutputFormat(str, Enum):
    """Console rendering of log records and channel output."""

    STRUCTURED = "structured"
    HUMAN_READABLE = "human_readable"


@dataclass(frozen=True)
class SocketSettings:
    """Unix socket channel configuration."""

    path: str
    send_text: str = ""
    read_enabled: bool = False
    exit_message: str = ""


@dataclass(frozen=True)
class RunParameters:  # pylint: disable=too-many-instance-attributes
    """Validated, immutable parameters for one invocation."""

    stdout_text: str = ""
    stderr_text: str = ""
    socket: SocketSettings | None = None
    repeat_count: int = 1
    repeat_forever: bool = False
    repeat_interval: float = 1.0
    timeout: float = 0.0
    sigterm_grace_period: float = 0.0
    interpolation_token: str = DEFAULT_INTERPOLATION_TOKEN
    interpolation_mode: InterpolationMode = InterpolationMode.INT_COUNTER
    interpolation_seed: str = ""
    exit_code: int | None = None
    output_format: OutputFormat = OutputFormat.STRUCTURED
    socket_dial_timeout: float = SOCKET_DIAL_TIMEOUT_SECONDS

    @property
    def active_channels(self) -> tuple[Channel, ...]:
        """Channels with something to do, in a stable order."""
        channels: list[Channel] = []
        if self.stdout_text:
            channels.append(Channel.STDOUT)
        if self.stderr_text:
            channels.append(Channel.STDERR)
        if self.socket is not None and self.socket.path:
            channels.append(Channel.SOCKET)
        return tuple(channels)

    def template_for(self, channel: Channel) -> str:
        """Return the text template emitted on `channel`."""
        if channel is Channel.STDOUT:
            return self.stdout_text
        if channel is Channel.STDERR:
            return self.stderr_text
        return self.socket.send_text if self.socket is not None else ""
