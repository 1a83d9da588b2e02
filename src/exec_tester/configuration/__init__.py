"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import DEFAULT_CONFIG_PATH, ConfigurationError, load_configuration_file
from .parameter_validation import ParameterSetValidationError, validate_parameter_sets
from .run_parameters import (
    DEFAULT_INTERPOLATION_TOKEN,
    SOCKET_DIAL_TIMEOUT_SECONDS,
    Channel,
    InterpolationMode,
    OutputFormat,
    RunParameters,
    SocketSettings,
)

__all__ = [
    "Channel",
    "InterpolationMode",
    "OutputFormat",
    "RunParameters",
    "SocketSettings",
    "DEFAULT_INTERPOLATION_TOKEN",
    "SOCKET_DIAL_TIMEOUT_SECONDS",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
    "load_configuration_file",
    "ParameterSetValidationError",
    "validate_parameter_sets",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
