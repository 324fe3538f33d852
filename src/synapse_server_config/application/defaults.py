"""Default value provider.

Purpose
-------
Compute the compiled-default tier for a given role and flatten any
configuration into the string-keyed map that installer prompts and CLI flags
speak. Defaults are rebuilt on every call; nothing is cached across roles.

Contents
    - ``default_configuration``: baseline :class:`ServerConfiguration` for a role.
    - ``default_controller_settings`` / ``default_node_settings``: sub-block
      baselines.
    - ``controller_default_values`` / ``node_default_values``: sub-block
      defaults as flat maps.
    - ``get_config_default_values``: the whole default tier as a flat map.
    - ``flatten`` / ``flatten_block``: flat string view of any configuration.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, TypeVar

from ..domain.enums import ServerRole
from ..domain.settings import (
    ControllerSettings,
    NodeSettings,
    ServerConfiguration,
    default_service_display_name,
    default_service_name,
    default_web_api_port,
    settings_of,
)
from ..observability import log_debug
from .coercion import format_value

B = TypeVar("B")


def default_configuration(role: ServerRole) -> ServerConfiguration:
    """Return the compiled-default configuration for *role*.

    Examples
    --------
    >>> default_configuration(ServerRole.NODE).web_api_port
    20001
    >>> default_configuration(ServerRole.CONTROLLER).service_display_name
    'Synapse Controller'
    """

    baseline = _block_defaults(ServerConfiguration)
    return replace(
        baseline,
        service_name=default_service_name(role),
        service_display_name=default_service_display_name(role),
        server_role=role,
        web_api_port=default_web_api_port(role),
        controller=default_controller_settings(),
        node=default_node_settings(),
    )


def default_controller_settings() -> ControllerSettings:
    return _block_defaults(ControllerSettings)


def default_node_settings() -> NodeSettings:
    return _block_defaults(NodeSettings)


def controller_default_values() -> dict[str, str]:
    """Controller sub-block defaults keyed by external field name."""

    return flatten_block(default_controller_settings())


def node_default_values() -> dict[str, str]:
    """Node sub-block defaults keyed by external field name."""

    return flatten_block(default_node_settings())


def get_config_default_values(role: ServerRole) -> dict[str, str]:
    """Return every default for *role* as ``{external key: string value}``.

    Sub-block maps are merged into the root map by key; a collision would be
    last-write-wins (node over controller over root).

    Examples
    --------
    >>> values = get_config_default_values(ServerRole.CONTROLLER)
    >>> values["ServiceName"], values["WebApiPort"], values["SignatureKeyFile"]
    ('Synapse.Controller', '20000', '')
    """

    values = flatten_block(default_configuration(role))
    values.update(controller_default_values())
    values.update(node_default_values())
    log_debug("defaults_computed", tier="default", path=None, role=role.value, keys=len(values))
    return values


def flatten(config: ServerConfiguration) -> dict[str, str]:
    """Return the root and both sub-blocks of *config* as one flat string map."""

    values = flatten_block(config)
    values.update(flatten_block(config.controller))
    values.update(flatten_block(config.node))
    return values


def flatten_block(target: Any) -> dict[str, str]:
    """Return the scalar fields of one settings block as ``{key: string}``."""

    return {spec.key: format_value(getattr(target, spec.name)) for spec in settings_of(target)}


def _block_defaults(block_type: type[B]) -> B:
    return block_type(**{spec.name: spec.default for spec in settings_of(block_type)})
