"""Application-layer override merge policy.

Purpose
-------
Combine the three precedence tiers (compiled defaults, persisted file,
explicit overrides) into one resolved configuration, field by field. The
module is free of I/O; :mod:`synapse_server_config.core` supplies the file
tier and persists the result.

Contents
    - ``MergePolicy`` / ``DEFAULT_POLICY``: named rules for what "set" means.
    - ``has_value``: the single test deciding whether an override applies.
    - ``build_candidate``: map-shaped input → typed override candidate.
    - ``configure_block``: per-block map → typed block (used for the root and
      for each sub-block).
    - ``merge_configuration`` / ``merge_block``: apply a candidate over the
      current result.

System Role
-----------
Precedence is ``explicit override > persisted file > compiled default``. Map
input is always converted into a candidate first and then goes through the
same object merge, so the precedence rules exist exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Final, Mapping, TypeVar

from ..domain.enums import ServerRole
from ..domain.settings import ControllerSettings, NodeSettings, ServerConfiguration, settings_of
from ..observability import log_debug
from .coercion import coerce, parse_enum
from .defaults import default_configuration, get_config_default_values

B = TypeVar("B")

#: Fields whose compiled default depends on the role.
_ROLE_DEPENDENT: Final[tuple[str, ...]] = ("service_name", "service_display_name", "web_api_port")


@dataclass(frozen=True, slots=True)
class MergePolicy:
    """Rules deciding whether an override tier supplies a meaningful value.

    Attributes
    ----------
    defaulting_is_unsettable:
        When ``True`` a string override equal to the compiled default for the
        candidate's role is treated as unset, so the file tier keeps its
        value. Consequence: the override tier cannot reset a string field back
        to its default. Enum, flag and integer overrides are never compared
        with the default; a parsed value applies whenever it differs from the
        current one. Switch off to let default-valued strings win as well, at
        the cost of map input (which is padded with defaults) overwriting
        every file string it does not mention.
    """

    defaulting_is_unsettable: bool = True


DEFAULT_POLICY: Final[MergePolicy] = MergePolicy()


def has_value(value: object, default: object, policy: MergePolicy = DEFAULT_POLICY) -> bool:
    """Return ``True`` when *value* is a meaningful override.

    ``None`` is always unset. Plain strings are also unset when blank, or when
    equal to *default* under *policy*. Any other parsed value is set.

    Examples
    --------
    >>> has_value("   ", None)
    False
    >>> has_value("Synapse.Controller", "Synapse.Controller")
    False
    >>> has_value("Synapse.Controller", "Synapse.Controller", MergePolicy(defaulting_is_unsettable=False))
    True
    >>> has_value(20000, 20000)
    True
    >>> from synapse_server_config.domain.enums import AuthenticationScheme
    >>> scheme = AuthenticationScheme.INTEGRATED_WINDOWS_AUTHENTICATION
    >>> has_value(scheme, scheme)
    True
    """

    if value is None:
        return False
    if isinstance(value, Enum) or not isinstance(value, str):
        return True
    if not value.strip():
        return False
    if policy.defaulting_is_unsettable and value == default:
        return False
    return True


def build_candidate(role: ServerRole, overrides: Mapping[str, str]) -> ServerConfiguration:
    """Turn a string map into a typed override candidate.

    Keys are matched case-insensitively and unknown keys are ignored. Keys the
    caller did not supply are padded with the defaults of the requested role
    so every field has a string representation before coercion. A value that
    fails to coerce leaves its field ``None`` (unset) without affecting the
    other fields. A ``ServerRole`` entry in the map takes precedence over
    *role*.

    The caller's mapping is not modified.
    """

    values = {str(key).lower(): value for key, value in overrides.items()}
    effective_role = _requested_role(role, values)
    for key, value in get_config_default_values(effective_role).items():
        values.setdefault(key.lower(), value)

    root = configure_block(ServerConfiguration, values)
    return replace(
        root,
        server_role=effective_role,
        controller=configure_block(ControllerSettings, values),
        node=configure_block(NodeSettings, values),
    )


def configure_block(block_type: type[B], values: Mapping[str, Any]) -> B:
    """Build one settings block from a map whose keys are already lower-cased."""

    kwargs: dict[str, Any] = {}
    for spec in settings_of(block_type):
        raw = values.get(spec.key.lower())
        if raw is None:
            continue
        value, ok = coerce(spec.kind, raw, validate=spec.validate)
        if not ok:
            log_debug("override_ignored", tier="override", path=None, key=spec.key, value=raw)
        kwargs[spec.name] = value
    return block_type(**kwargs)


def merge_configuration(
    result: ServerConfiguration,
    candidate: ServerConfiguration,
    policy: MergePolicy = DEFAULT_POLICY,
) -> ServerConfiguration:
    """Apply *candidate* over *result* and return the merged configuration.

    *result* holds the compiled defaults already overlaid with the file tier.
    Each candidate field replaces the current value only when it is set
    (see :func:`has_value`) and differs. When the candidate switches the role,
    role-dependent fields still at the previous role's defaults move to the
    new role's defaults first.

    Examples
    --------
    >>> current = default_configuration(ServerRole.CONTROLLER)
    >>> merged = merge_configuration(current, ServerConfiguration(web_api_port=20500, service_name=" "))
    >>> merged.web_api_port, merged.service_name
    (20500, 'Synapse.Controller')
    """

    target_role = candidate.server_role if candidate.server_role is not None else result.role
    reference = default_configuration(target_role)

    changes: dict[str, Any] = {}
    if target_role is not result.role:
        changes.update(_rebase_role_defaults(result, target_role))
        changes["server_role"] = target_role

    working = replace(result, **changes)
    changes.update(_overrides(working, candidate, reference, policy, skip=("server_role",)))
    changes["controller"] = merge_block(result.controller, candidate.controller, reference.controller, policy)
    changes["node"] = merge_block(result.node, candidate.node, reference.node, policy)
    return replace(result, **changes)


def merge_block(target: B, candidate: B, reference: B, policy: MergePolicy = DEFAULT_POLICY) -> B:
    """Apply the set fields of a sub-block *candidate* over *target*."""

    changes = _overrides(target, candidate, reference, policy)
    if not changes:
        return target
    return replace(target, **changes)


def _overrides(
    target: Any,
    candidate: Any,
    reference: Any,
    policy: MergePolicy,
    skip: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Return ``{attribute: value}`` for candidate fields that should replace *target*'s."""

    changes: dict[str, Any] = {}
    for spec in settings_of(target):
        if spec.name in skip:
            continue
        proposed = getattr(candidate, spec.name)
        if not has_value(proposed, getattr(reference, spec.name), policy):
            continue
        if proposed == getattr(target, spec.name):
            continue
        changes[spec.name] = proposed
        log_debug("override_applied", tier="override", path=None, key=spec.key)
    return changes


def _rebase_role_defaults(result: ServerConfiguration, role: ServerRole) -> dict[str, Any]:
    previous = default_configuration(result.role)
    upcoming = default_configuration(role)
    rebased = {
        name: getattr(upcoming, name)
        for name in _ROLE_DEPENDENT
        if getattr(result, name) == getattr(previous, name)
    }
    log_debug(
        "role_rebased",
        tier="default",
        path=None,
        previous=result.role.value,
        role=role.value,
        fields=sorted(rebased),
    )
    return rebased


def _requested_role(role: ServerRole, values: Mapping[str, Any]) -> ServerRole:
    raw = values.get("serverrole")
    if raw is None:
        return role
    parsed, ok = parse_enum(ServerRole, raw)
    if not ok or parsed is None:
        log_debug("override_ignored", tier="override", path=None, key="ServerRole", value=raw)
        return role
    return parsed


__all__ = [
    "DEFAULT_POLICY",
    "MergePolicy",
    "build_candidate",
    "configure_block",
    "has_value",
    "merge_block",
    "merge_configuration",
]
