"""CLI adapter for ``synapse_server_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Give installers and operators a command line front end to the configuration
facade: show the defaults for a role, resolve and persist a configuration from
``KEY=VALUE`` input, and print the persisted file.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_defaults` – prints the compiled defaults for a role.
* :func:`cli_configure` – resolves overrides against the persisted file.
* :func:`cli_show` – prints the persisted configuration.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer. It only talks to :mod:`synapse_server_config.core`;
``lib_cli_exit_tools`` owns exit codes and error rendering.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.store.structured import StructuredConfigStore
from .application.defaults import flatten
from .core import ServerConfigService, as_role, get_defaults
from .domain.enums import ServerRole

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

ROLE_CHOICES: Final[tuple[str, ...]] = tuple(role.value for role in ServerRole)

_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Configuration file (defaults to $SYNAPSE_SERVER_CONFIG or the install directory)",
)


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` when running from a checkout."""

    try:
        return metadata.version("synapse-server-config")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Resolve and persist the Synapse server startup configuration",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="synapse-server-config",
    message="synapse-server-config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for ``lib_cli_exit_tools``."""

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata("synapse-server-config")
    except metadata.PackageNotFoundError:
        click.echo("synapse-server-config (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'synapse-server-config')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("defaults", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--role",
    required=True,
    type=click.Choice(ROLE_CHOICES, case_sensitive=False),
    help="Server role whose defaults should be printed",
)
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent size")
def cli_defaults(role: str, indent: int) -> None:
    """Print the compiled defaults for ROLE as JSON.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["defaults", "--role", "node", "--indent", "0"])
    >>> json.loads(result.output)["WebApiPort"]
    '20001'
    """

    values = get_defaults(role)
    click.echo(json.dumps(values, indent=indent))


@cli.command("configure", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--role",
    required=True,
    type=click.Choice(ROLE_CHOICES, case_sensitive=False),
    help="Server role to configure",
)
@click.option(
    "--set",
    "assignments",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a field, e.g. --set WebApiPort=21000 (repeatable, keys are case-insensitive)",
)
@_CONFIG_OPTION
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent size")
def cli_configure(role: str, assignments: Sequence[str], config_path: Optional[Path], indent: int) -> None:
    """Resolve overrides against the persisted file, save, and print the result.

    Values that do not parse for their field are ignored and the previous
    value is kept.
    """

    overrides = _parse_assignments(assignments)
    resolved = _service(config_path).configure(as_role(role), overrides)
    click.echo(json.dumps(flatten(resolved), indent=indent))


@cli.command("show", context_settings=CLICK_CONTEXT_SETTINGS)
@_CONFIG_OPTION
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent size")
def cli_show(config_path: Optional[Path], indent: int) -> None:
    """Print the persisted configuration, creating a default file when none exists."""

    config = _service(config_path).load()
    click.echo(json.dumps(flatten(config), indent=indent))


def _service(config_path: Optional[Path]) -> ServerConfigService:
    store = StructuredConfigStore(config_path) if config_path is not None else None
    return ServerConfigService(store)


def _parse_assignments(values: Sequence[str]) -> dict[str, str]:
    """Split ``KEY=VALUE`` options into a map; the last assignment of a key wins."""

    overrides: dict[str, str] = {}
    for entry in values:
        key, separator, value = entry.partition("=")
        if not separator or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {entry!r}", param_hint="--set")
        overrides[key.strip().lower()] = value
    return overrides


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="synapse-server-config",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
