"""CLI orchestration integration tests."""

from __future__ import annotations

import json
import logging
import socket
import tempfile
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from exec_tester.cli import cli
from exec_tester.console_logging import PACKAGE_LOGGER_NAME


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(
        "exec_tester.configuration.loader.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml"
    )
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    handlers = list(logger.handlers)
    yield
    logger.handlers = handlers


def _json_lines(text: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def _messages(text: str) -> list[str]:
    return [record["msg"] for record in _json_lines(text)]


def test_repeats_structured_output_on_stdout() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["--stdout", "stdout counter: __I__", "--repeat", "3", "-p", "0"])

    assert result.exit_code == 0
    assert _messages(result.stdout) == [
        "stdout counter: 0",
        "stdout counter: 1",
        "stdout counter: 2",
    ]
    assert all(record["level"] == "INFO" for record in _json_lines(result.stdout))


def test_stdout_and_stderr_channels_are_separated() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["-o", "to stdout", "-e", "to stderr", "-z", "human_readable", "-p", "0"]
    )

    assert result.exit_code == 0
    assert result.stdout == "to stdout\n"
    assert "to stderr" in result.stderr
    assert "to stdout" not in result.stderr


def test_int_counter_starts_at_interpolate_val() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["--stdout", "n=__I__", "-r", "3", "-p", "0", "-v", "5", "-z", "human_readable"],
    )

    assert result.stdout.splitlines() == ["n=5", "n=6", "n=7"]


def test_string_interpolator_with_custom_key() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "--stdout",
            "counter: %%",
            "--repeat",
            "2",
            "--repeat_interval",
            "0",
            "--interpolator",
            "string",
            "--interpolate_key",
            "%%",
            "--interpolate_val",
            "zzz",
            "--output_format",
            "human_readable",
        ],
    )

    assert result.stdout.splitlines() == ["counter: zzz", "counter: zzz"]


def test_invalid_interpolate_val_logs_warning_and_counts_from_zero() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["--stdout", "n=__I__", "-v", "abc", "-p", "0"])

    assert result.exit_code == 0
    assert _messages(result.stdout) == ["n=0"]
    warnings = [record for record in _json_lines(result.stderr) if record["level"] == "WARN"]
    assert warnings
    assert "cannot be converted to a number" in warnings[0]["msg"]


def test_exits_with_requested_code_after_output() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["--stdout", "sending to stdout", "--exitcode", "123", "-p", "0"])

    assert result.exit_code == 123
    assert _messages(result.stdout) == ["sending to stdout"]


def test_exit_code_alone_is_a_valid_run() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["--exitcode", "4"])

    assert result.exit_code == 4
    assert result.stdout == ""


def test_explicit_zero_exit_code_is_a_valid_run() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["--exitcode", "0"])

    assert result.exit_code == 0
    assert result.exception is None


def test_timeout_stops_repeat_forever() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["--stdout", "tick", "--repeat_forever", "--repeat_interval", "0.05", "-t", "0.2"]
    )

    assert result.exit_code == 0
    assert 2 <= len(_messages(result.stdout)) <= 10
    assert "Timeout of '0.2' was reached" in _messages(result.stderr)


def test_environment_variables_supply_flags() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [],
        env={"ET_STDOUT": "from env __I__", "ET_REPEAT": "2", "ET_REPEAT_INTERVAL": "0"},
    )

    assert result.exit_code == 0
    assert _messages(result.stdout) == ["from env 0", "from env 1"]


def test_config_file_supplies_defaults_and_flags_override(tmp_path: Path) -> None:
    config_path = tmp_path / "exectester.yaml"
    config_path.write_text(
        "stdout: 'from config __I__'\nrepeat: 2\nrepeat_interval: 0\n"
        "output_format: human_readable\nexitcode: 9\n",
        encoding="utf-8",
    )
    runner = CliRunner()

    result = runner.invoke(cli, ["--config", str(config_path), "--repeat", "1"])

    assert result.exit_code == 9
    assert result.stdout.splitlines() == ["from config 0"]


def test_default_config_file_is_loaded_when_present(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    default_path = tmp_path / ".exectester.yaml"
    default_path.write_text("stderr: 'home config'\nrepeat_interval: 0\n", encoding="utf-8")
    monkeypatch.setattr("exec_tester.configuration.loader.DEFAULT_CONFIG_PATH", default_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["-z", "human_readable"])

    assert result.exit_code == 0
    assert "home config" in result.stderr


def test_generate_config_writes_template(tmp_path: Path) -> None:
    output_path = tmp_path / "generated.yaml"
    runner = CliRunner()

    result = runner.invoke(cli, ["--generate-config", str(output_path)])

    assert result.exit_code == 0
    assert output_path.exists()
    assert str(output_path.resolve()) in result.stdout
    assert "# stdout:" in output_path.read_text(encoding="utf-8")


def test_socket_round_trip_echoes_reply_to_stdout() -> None:
    with tempfile.TemporaryDirectory(dir="/tmp", prefix="et-") as directory:
        socket_path = Path(directory) / "app.sock"
        received: list[bytes] = []
        server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        server.bind(str(socket_path))
        server.listen()

        def serve() -> None:
            connection, _ = server.accept()
            with connection:
                received.append(connection.recv(1024))
                connection.sendall(b"pong bye")
                connection.recv(1024)

        thread = threading.Thread(target=serve, daemon=True)
        thread.start()
        runner = CliRunner()

        result = runner.invoke(
            cli,
            [
                "--socket",
                str(socket_path),
                "--socket_send",
                "ping __I__",
                "--read_socket",
                "--socket_exit_msg",
                "bye",
                "-p",
                "0",
            ],
        )
        thread.join(timeout=5)
        server.close()

    assert result.exit_code == 0
    assert received == [b"ping 0\n"]
    assert _messages(result.stdout) == ["pong bye"]
