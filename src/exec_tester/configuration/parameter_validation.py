"""Validation of parameter groupings."""

from __future__ import annotations

from .run_parameters import RunParameters


class ParameterSetValidationError(Exception):
    """Raised when the combination of supplied parameters cannot produce a run."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"(paramSetValidationError) {self.message}"


def validate_parameter_sets(params: RunParameters) -> None:
    """Fail fast when no output is requested or the socket channel has nothing to do.

    Raises:
      ParameterSetValidationError: If neither an output channel nor an exit code is set,
        or if a socket is set without sending or reading enabled.
    """
    socket_set = params.socket is not None and bool(params.socket.path)
    if (
        not params.stdout_text
        and not params.stderr_text
        and not socket_set
        and params.exit_code is None
    ):
        raise ParameterSetValidationError(
            "you must specify at least stderr | stdout | socket | exitcode"
        )
    if socket_set and params.socket is not None:
        if not params.socket.send_text and not params.socket.read_enabled:
            raise ParameterSetValidationError(
                "if socket specified must also set socket_send and or read_socket"
            )
