"""End-to-end CLI coverage for the commands exposed by synapse-server-config.

These tests drive the Click group through ``CliRunner`` against isolated
configuration files so each command's JSON output and persistence side effects
can be asserted directly.
"""

from __future__ import annotations

import json
from pathlib import Path

import lib_cli_exit_tools
from click.testing import CliRunner

from synapse_server_config import cli


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def test_cli_defaults_for_each_role() -> None:
    controller = _runner().invoke(cli.cli, ["defaults", "--role", "Controller"])
    node = _runner().invoke(cli.cli, ["defaults", "--role", "node"])
    assert controller.exit_code == 0
    assert node.exit_code == 0
    assert json.loads(controller.output)["WebApiPort"] == "20000"
    assert json.loads(node.output)["ServiceName"] == "Synapse.Node"


def test_cli_configure_persists_overrides(tmp_path: Path) -> None:
    target = tmp_path / "Synapse.Server.config.yaml"
    result = _runner().invoke(
        cli.cli,
        [
            "configure",
            "--role",
            "Controller",
            "--set",
            "authenticationscheme=Negotiate",
            "--set",
            "WebApiPort=not-a-number",
            "--config",
            str(target),
        ],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["AuthenticationScheme"] == "Negotiate"
    assert payload["WebApiPort"] == "20000"
    assert target.is_file()


def test_cli_show_reads_back_configuration(tmp_path: Path) -> None:
    target = tmp_path / "server.json"
    _runner().invoke(cli.cli, ["configure", "--role", "Node", "--set", "MaxServerThreads=4", "--config", str(target)])
    result = _runner().invoke(cli.cli, ["show", "--config", str(target), "--indent", "0"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["ServerRole"] == "Node"
    assert payload["MaxServerThreads"] == "4"


def test_cli_show_seeds_missing_file(tmp_path: Path) -> None:
    target = tmp_path / "fresh.yaml"
    result = _runner().invoke(cli.cli, ["show", "--config", str(target)])
    assert result.exit_code == 0
    assert json.loads(result.output)["ServiceName"] == "Synapse.Controller"
    assert target.is_file()


def test_cli_configure_rejects_malformed_assignment(tmp_path: Path) -> None:
    result = _runner().invoke(
        cli.cli,
        ["configure", "--role", "Controller", "--set", "WebApiPort", "--config", str(tmp_path / "server.yaml")],
    )
    assert result.exit_code != 0
    assert "KEY=VALUE" in result.output
    assert not (tmp_path / "server.yaml").exists()


def test_cli_rejects_unknown_role() -> None:
    result = _runner().invoke(cli.cli, ["defaults", "--role", "Gateway"])
    assert result.exit_code != 0


def test_cli_info_runs() -> None:
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "synapse-server-config" in result.output.lower()


def test_main_returns_exit_code_for_invalid_file(tmp_path: Path) -> None:
    target = tmp_path / "server.yaml"
    target.write_text("WebApiPort: [", encoding="utf-8")
    exit_code = cli.main(["configure", "--role", "Controller", "--config", str(target)])
    assert exit_code != 0


def test_main_restores_traceback_flag() -> None:
    lib_cli_exit_tools.config.traceback = False
    cli.main(["--traceback", "defaults", "--role", "Node"])
    assert lib_cli_exit_tools.config.traceback is False
