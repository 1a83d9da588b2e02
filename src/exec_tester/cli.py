"""Command line interface entry point."""

from __future__ import annotations

import sys

import click
from click.core import ParameterSource

from exec_tester.configuration import (
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_INTERPOLATION_TOKEN,
    ConfigurationError,
    InterpolationMode,
    OutputFormat,
    ParameterSetValidationError,
    RunParameters,
    SocketSettings,
    load_configuration_file,
    write_placeholder_configuration,
)
from exec_tester.console_logging import configure_logging
from exec_tester.dispatch import dispatch

ENV_PREFIX = "ET"


class CliError(Exception):
    """Custom CLI error."""


def _load_config_defaults(ctx: click.Context, _param: click.Parameter, value: str | None) -> None:
    try:
        defaults = load_configuration_file(value, required=value is not None)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc
    if defaults:
        ctx.default_map = {**(ctx.default_map or {}), **defaults}


def _generate_config(ctx: click.Context, _param: click.Parameter, value: str | None) -> None:
    if value is None or ctx.resilient_parsing:
        return
    try:
        resolved_output = write_placeholder_configuration(value)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))
    ctx.exit(0)


@click.command(
    name="et",
    context_settings={"help_option_names": ["-h", "--help"], "auto_envvar_prefix": ENV_PREFIX},
)
@click.version_option(package_name="exec-tester")
@click.option(
    "--config",
    type=click.Path(dir_okay=False, path_type=str),
    is_eager=True,
    expose_value=False,
    callback=_load_config_defaults,
    help="Config file (default is $HOME/.exectester.yaml)",
)
@click.option(
    "--generate-config",
    type=click.Path(dir_okay=False, path_type=str),
    is_eager=True,
    expose_value=False,
    callback=_generate_config,
    help=f"Write a commented configuration template (e.g. {DEFAULT_CONFIG_FILENAME}) and exit",
)
@click.option("--stdout", "-o", default="", help="Text to send to stdout")
@click.option("--stderr", "-e", default="", help="Text to send to stderr")
@click.option("--socket", "-u", default="", help="Name of unix socket")
@click.option("--socket_send", "-w", default="", help="Text to send to unix socket")
@click.option(
    "--read_socket", "-q", is_flag=True, default=False, help="Poll the unix socket for output"
)
@click.option(
    "--socket_exit_msg",
    "-l",
    default="",
    help="Stop reading from the socket once it returns this text",
)
@click.option(
    "--output_format",
    "-z",
    type=click.Choice([item.value for item in OutputFormat]),
    default=OutputFormat.STRUCTURED.value,
    show_default=True,
    help="Render output as JSON lines or plain text",
)
@click.option(
    "--interpolator",
    "-i",
    type=click.Choice([item.value for item in InterpolationMode]),
    default=InterpolationMode.INT_COUNTER.value,
    show_default=True,
    help="The interpolator to use on the interpolate_key",
)
@click.option("--exitcode", "-c", type=int, default=0, help="Exit with this exit code")
@click.option(
    "--repeat",
    "-r",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of times to repeat output",
)
@click.option(
    "--repeat_interval",
    "-p",
    type=click.FloatRange(min=0),
    default=1.0,
    show_default=True,
    help="Seconds to wait between repeated output",
)
@click.option(
    "--interpolate_key",
    "-k",
    default=DEFAULT_INTERPOLATION_TOKEN,
    show_default=True,
    help="Substring key to interpolate",
)
@click.option(
    "--interpolate_val", "-v", default="", help="The value to replace interpolate_key with"
)
@click.option("--repeat_forever", "-f", is_flag=True, default=False, help="Run forever")
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0),
    default=0.0,
    help="Exits when timeout (seconds) exceeded. '0' means no timeout set",
)
@click.option(
    "--sigterm_timeout",
    "-x",
    type=click.FloatRange(min=0),
    default=0.0,
    help="If a sigterm is caught while running wait for X seconds before exiting",
)
@click.pass_context
def cli(  # pylint: disable=too-many-arguments,too-many-locals
    ctx: click.Context,
    stdout: str,
    stderr: str,
    socket: str,
    socket_send: str,
    read_socket: bool,
    socket_exit_msg: str,
    output_format: str,
    interpolator: str,
    exitcode: int,
    repeat: int,
    repeat_interval: float,
    interpolate_key: str,
    interpolate_val: str,
    repeat_forever: bool,
    timeout: float,
    sigterm_timeout: float,
) -> None:
    """Send arbitrary text to stdout, stderr and/or a unix socket, then exit.

    Output can be repeated and interpolated with a counter or a fixed string.
    Every flag can also be set through an ET_<FLAG> environment variable or the
    config file.

    \b
    Examples:
      Send to stdout and stderr:
        et --stdout='sending to stdout' --stderr='sending to stderr'
      Send to stdout and stderr 3 times:
        et --stdout='sending to stdout' --stderr='sending to stderr' --repeat=3
      Interpolate __I__ with an int counter starting at 5:
        et --stdout='stdout counter: __I__' --repeat=3 --interpolate_val=5
      Interpolate __I__ with the string 'zzz':
        et --stdout='counter: __I__' --repeat=3 --interpolator=string --interpolate_val=zzz
      Send to stdout for 5 seconds:
        et --stdout='stdout counter: __I__' --repeat_forever --timeout=5
      Send to a unix socket and read until it answers 'bye':
        et --socket=/tmp/app.sock --socket_send='ping __I__' --read_socket --socket_exit_msg=bye
      Send to stdout and then exit with code '123':
        et --stdout='sending to stdout' --exitcode=123
    """
    exit_code_set = ctx.get_parameter_source("exitcode") is not ParameterSource.DEFAULT
    params = RunParameters(
        stdout_text=stdout,
        stderr_text=stderr,
        socket=(
            SocketSettings(
                path=socket,
                send_text=socket_send,
                read_enabled=read_socket,
                exit_message=socket_exit_msg,
            )
            if socket
            else None
        ),
        repeat_count=repeat,
        repeat_forever=repeat_forever,
        repeat_interval=repeat_interval,
        timeout=timeout,
        sigterm_grace_period=sigterm_timeout,
        interpolation_token=interpolate_key,
        interpolation_mode=InterpolationMode(interpolator),
        interpolation_seed=interpolate_val,
        exit_code=exitcode if exit_code_set else None,
        output_format=OutputFormat(output_format),
    )
    configure_logging(params.output_format)
    try:
        outcome = dispatch(params)
    except ParameterSetValidationError as exc:
        raise CliError(str(exc)) from exc
    ctx.exit(outcome.exit_code)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        exit_code = cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return exit_code if isinstance(exit_code, int) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
