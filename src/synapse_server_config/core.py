"""Composition root for ``synapse_server_config``.

Purpose
-------
Provide the configuration facade: the single entry point that seeds the
compiled defaults, reads the persisted file, applies explicit overrides, and
writes the result back as the new source of truth.

Contents
--------
* :class:`ServerConfigService` – facade bound to one store and merge policy.
* :func:`get_defaults` / :func:`configure` / :func:`configure_object` /
  :func:`load_config` – module-level conveniences that build a service for an
  optional path.
* :func:`as_role` – accepts a role member or its name.

System Role
-----------
Installers and the CLI call into this module once per process start or
installation. Resolution is synchronous; the store is neither locked nor
watched. Store failures (:class:`InvalidFormat`, :class:`OSError`) abort the
resolution and propagate to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from .adapters.path_resolvers.default import DefaultPathResolver
from .adapters.store.structured import StructuredConfigStore
from .application.coercion import parse_enum
from .application.defaults import default_configuration, get_config_default_values
from .application.merge import DEFAULT_POLICY, MergePolicy, build_candidate, merge_configuration
from .application.ports import ConfigStore
from .domain.enums import ServerRole
from .domain.errors import ValidationError
from .domain.settings import ServerConfiguration
from .observability import log_info, make_event


class ServerConfigService:
    """Resolve, persist, and read the server configuration.

    Parameters
    ----------
    store:
        Persistence collaborator. Defaults to a
        :class:`StructuredConfigStore` at the path chosen by
        :class:`DefaultPathResolver`.
    policy:
        Merge rules; see :class:`MergePolicy`.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> service = ServerConfigService(StructuredConfigStore(Path(tmp.name) / "server.yaml"))
    >>> resolved = service.configure("Node", {"webapiport": "21001"})
    >>> resolved.service_name, resolved.web_api_port
    ('Synapse.Node', 21001)
    >>> service.load() == resolved
    True
    >>> tmp.cleanup()
    """

    def __init__(self, store: ConfigStore | None = None, *, policy: MergePolicy = DEFAULT_POLICY) -> None:
        self.store = store if store is not None else StructuredConfigStore(DefaultPathResolver().config_file())
        self.policy = policy

    def get_defaults(self, role: ServerRole | str) -> dict[str, str]:
        """Return the compiled defaults for *role* as a flat string map (for prompts and display)."""

        return get_config_default_values(as_role(role))

    def configure(self, role: ServerRole | str, overrides: Mapping[str, str] | None = None) -> ServerConfiguration:
        """Resolve from loosely typed map input, persist, and return the result.

        Keys are case-insensitive external field names (``"WebApiPort"``,
        ``"authenticationscheme"``...). Values that fail to parse are ignored
        field by field.
        """

        candidate = build_candidate(as_role(role), overrides or {})
        return self.configure_object(candidate)

    def configure_object(self, candidate: ServerConfiguration) -> ServerConfiguration:
        """Resolve a typed candidate over the persisted file, persist, and return the result.

        ``None`` and blank fields of *candidate* are unset and leave the file
        (or default) value in place.
        """

        path = str(self.store.path)
        result = default_configuration(candidate.role)
        tier = "default"
        if self.store.exists():
            result = self.store.load()
            tier = "file"

        resolved = merge_configuration(result, candidate, self.policy)
        self.store.save(resolved)
        log_info(
            "configuration_resolved",
            **make_event("resolved", path, {"base": tier, "role": resolved.role.value}),
        )
        return resolved

    def load(self) -> ServerConfiguration:
        """Return the persisted configuration verbatim, seeding a default file first if none exists."""

        if not self.store.exists():
            self.store.save(default_configuration(ServerRole.CONTROLLER))
            log_info("config_file_seeded", **make_event("default", str(self.store.path)))
        return self.store.load()


def as_role(value: ServerRole | str) -> ServerRole:
    """Return *value* as a :class:`ServerRole`.

    Raises
    ------
    ValidationError
        When *value* names no role. Unlike an override value, the role an
        operator asks for is never silently replaced.

    Examples
    --------
    >>> as_role("controller")
    <ServerRole.CONTROLLER: 'Controller'>
    """

    role, ok = parse_enum(ServerRole, value)
    if not ok or role is None:
        raise ValidationError(f"Unknown server role: {value!r}")
    return role


def get_defaults(role: ServerRole | str) -> dict[str, str]:
    """Return the compiled defaults for *role* as a flat string map."""

    return get_config_default_values(as_role(role))


def configure(
    role: ServerRole | str,
    overrides: Mapping[str, str] | None = None,
    *,
    path: str | Path | None = None,
    policy: MergePolicy = DEFAULT_POLICY,
) -> ServerConfiguration:
    """Resolve map input against the file at *path* (or the conventional location)."""

    return _service(path, policy).configure(role, overrides)


def configure_object(
    candidate: ServerConfiguration,
    *,
    path: str | Path | None = None,
    policy: MergePolicy = DEFAULT_POLICY,
) -> ServerConfiguration:
    """Resolve a typed candidate against the file at *path* (or the conventional location)."""

    return _service(path, policy).configure_object(candidate)


def load_config(path: str | Path | None = None) -> ServerConfiguration:
    """Read the file at *path* (or the conventional location), creating it with defaults if absent."""

    return _service(path, DEFAULT_POLICY).load()


def _service(path: str | Path | None, policy: MergePolicy) -> ServerConfigService:
    store = StructuredConfigStore(path) if path is not None else None
    return ServerConfigService(store, policy=policy)


__all__ = [
    "ServerConfigService",
    "as_role",
    "configure",
    "configure_object",
    "get_defaults",
    "load_config",
]
