"""Domain value objects describing a server configuration.

Purpose
-------
Define :class:`ServerConfiguration` and its two role sub-blocks as immutable
dataclasses whose fields carry their own wire metadata (external key, value
kind, role-independent default, validator). The merge engine, the default
provider, and the persistence adapter all walk that metadata instead of
naming fields one by one.

Contents
--------
* :func:`setting` – declares a configuration field with its metadata.
* :class:`SettingSpec` / :func:`settings_of` / :func:`blocks_of` – read the
  metadata back.
* :class:`ControllerSettings` / :class:`NodeSettings` – role sub-blocks.
* :class:`ServerConfiguration` – the root entity.
* ``default_service_name`` and friends – role-dependent compiled defaults.

System Role
-----------
Every field defaults to ``None``, which means "unset" in an override
candidate. A resolved configuration produced by the facade has every field
populated except the optional ``signature_key_file``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Final

from .enums import AuthenticationScheme, CspProviderFlags, ServerRole

CONTROLLER_WEB_API_PORT: Final[int] = 20000
NODE_WEB_API_PORT: Final[int] = 20001
DEFAULT_KEY_CONTAINER_NAME: Final[str] = "DefaultContainerName"


def default_service_name(role: ServerRole) -> str:
    """Return the compiled service name for *role*.

    >>> default_service_name(ServerRole.NODE)
    'Synapse.Node'
    """

    return f"Synapse.{role.value}"


def default_service_display_name(role: ServerRole) -> str:
    """Return the compiled service display name for *role*."""

    return f"Synapse {role.value}"


def default_web_api_port(role: ServerRole) -> int:
    """Return the compiled listening port; every non-controller role listens on the node port."""

    return CONTROLLER_WEB_API_PORT if role is ServerRole.CONTROLLER else NODE_WEB_API_PORT


def _is_port(value: int) -> bool:
    return 0 < value < 65536


def _is_non_negative(value: int) -> bool:
    return value >= 0


def setting(
    key: str,
    kind: type = str,
    *,
    default: Any = None,
    validate: Callable[[Any], bool] | None = None,
) -> Any:
    """Declare a configuration field.

    Parameters
    ----------
    key:
        External name used in override maps and in the persisted file. Lookups
        are case-insensitive.
    kind:
        ``str``, ``int``, or an :class:`enum.Enum` subclass; selects the
        coercion routine.
    default:
        Role-independent compiled default. Role-dependent defaults are
        computed by :mod:`synapse_server_config.application.defaults`.
    validate:
        Optional predicate a coerced value must satisfy to be accepted.
    """

    return field(default=None, metadata={"key": key, "kind": kind, "default": default, "validate": validate})


def block(key: str, factory: Callable[[], Any]) -> Any:
    """Declare a nested settings block stored under *key*."""

    return field(default_factory=factory, metadata={"key": key, "block": True})


@dataclass(frozen=True, slots=True)
class SettingSpec:
    """Metadata of one scalar configuration field."""

    name: str
    key: str
    kind: Any
    default: Any
    validate: Callable[[Any], bool] | None


def settings_of(target: Any) -> tuple[SettingSpec, ...]:
    """Return scalar field metadata of a settings dataclass (type or instance), in declaration order."""

    return tuple(
        SettingSpec(
            name=item.name,
            key=item.metadata["key"],
            kind=item.metadata["kind"],
            default=item.metadata["default"],
            validate=item.metadata["validate"],
        )
        for item in fields(target)
        if "kind" in item.metadata
    )


def blocks_of(target: Any) -> tuple[tuple[str, str], ...]:
    """Return ``(attribute, key)`` pairs for the nested blocks of *target*."""

    return tuple((item.name, item.metadata["key"]) for item in fields(target) if item.metadata.get("block"))


@dataclass(frozen=True, slots=True)
class ControllerSettings:
    """Settings used when the process runs as the controller."""

    node_url: str | None = setting("NodeUrl", default="http://localhost:20001/synapse/node")
    dal_provider: str | None = setting("DalProvider", default="FileSystemDal")


@dataclass(frozen=True, slots=True)
class NodeSettings:
    """Settings used when the process runs as a node."""

    controller_url: str | None = setting("ControllerUrl", default="http://localhost:20000/synapse/execute")
    max_server_threads: int | None = setting("MaxServerThreads", int, default=0, validate=_is_non_negative)
    audit_log_roll_interval: int | None = setting("AuditLogRollInterval", int, default=3600, validate=_is_non_negative)


@dataclass(frozen=True, slots=True)
class ServerConfiguration:
    """Startup configuration of one server process.

    Both sub-blocks are always present so a process can be reconfigured into
    the other role without losing that role's settings.

    Examples
    --------
    >>> cfg = ServerConfiguration(server_role=ServerRole.NODE, service_name="Synapse.Node")
    >>> cfg.has_default_service_name, cfg.is_controller
    (True, False)
    """

    service_name: str | None = setting("ServiceName")
    service_display_name: str | None = setting("ServiceDisplayName")
    server_role: ServerRole | None = setting("ServerRole", ServerRole)
    web_api_port: int | None = setting("WebApiPort", int, validate=_is_port)
    authentication_scheme: AuthenticationScheme | None = setting(
        "AuthenticationScheme",
        AuthenticationScheme,
        default=AuthenticationScheme.INTEGRATED_WINDOWS_AUTHENTICATION,
    )
    signature_key_file: str | None = setting("SignatureKeyFile")
    signature_key_container_name: str | None = setting(
        "SignatureKeyContainerName", default=DEFAULT_KEY_CONTAINER_NAME
    )
    signature_csp_provider_flags: CspProviderFlags | None = setting(
        "SignatureCspProviderFlags", CspProviderFlags, default=CspProviderFlags.NO_FLAGS
    )
    controller: ControllerSettings = block("Controller", ControllerSettings)
    node: NodeSettings = block("Node", NodeSettings)

    @property
    def role(self) -> ServerRole:
        """Effective role; an unset role means controller."""

        return self.server_role if self.server_role is not None else ServerRole.CONTROLLER

    @property
    def is_controller(self) -> bool:
        return self.role is ServerRole.CONTROLLER

    @property
    def has_default_service_name(self) -> bool:
        """``True`` while the service name still equals the compiled default for the role."""

        return self.service_name == default_service_name(self.role)

    @property
    def has_default_service_display_name(self) -> bool:
        return self.service_display_name == default_service_display_name(self.role)

    @property
    def has_service_name_defaults(self) -> bool:
        """``True`` when either service name is still at its default."""

        return self.has_default_service_name or self.has_default_service_display_name


__all__ = [
    "CONTROLLER_WEB_API_PORT",
    "ControllerSettings",
    "DEFAULT_KEY_CONTAINER_NAME",
    "NODE_WEB_API_PORT",
    "NodeSettings",
    "ServerConfiguration",
    "SettingSpec",
    "blocks_of",
    "default_service_display_name",
    "default_service_name",
    "default_web_api_port",
    "setting",
    "settings_of",
]
