"""Typed value coercion.

Purpose
-------
Turn loosely typed input (installer prompts, CLI flags, values read from a
hand-edited file) into the typed value a configuration field expects. Every
routine returns ``(value, ok)`` and never raises; callers decide from ``ok``
whether to apply the value.

Contents
--------
* :func:`parse_int` – signed decimal integers.
* :func:`parse_enum` – case-insensitive member lookup by name or value.
* :func:`parse_flags` – comma-separated flag names OR-ed together.
* :func:`coerce` – dispatch on a field kind, with optional validation.
* :func:`format_value` – the inverse, producing wire strings.
"""

from __future__ import annotations

import re
from enum import Enum, Flag
from typing import Any, Callable, TypeVar

E = TypeVar("E", bound=Enum)

_INTEGER = re.compile(r"\s*[+-]?[0-9]+\s*")


def parse_int(raw: object) -> tuple[int | None, bool]:
    """Parse a decimal integer, tolerating surrounding whitespace.

    Examples
    --------
    >>> parse_int(" 20001 ")
    (20001, True)
    >>> parse_int("not-a-number")
    (None, False)
    >>> parse_int("1_000")
    (None, False)
    """

    if isinstance(raw, bool):
        return None, False
    if isinstance(raw, int):
        return int(raw), True
    if not isinstance(raw, str) or _INTEGER.fullmatch(raw) is None:
        return None, False
    return int(raw), True


def parse_enum(enum_type: type[E], raw: object) -> tuple[E | None, bool]:
    """Resolve *raw* to a member of *enum_type* ignoring case and underscores.

    Names and values are both accepted, so ``"integratedwindowsauthentication"``
    and ``"INTEGRATED_WINDOWS_AUTHENTICATION"`` resolve to the same member.
    Numeric strings resolve by value.

    Examples
    --------
    >>> from synapse_server_config.domain.enums import ServerRole
    >>> parse_enum(ServerRole, "node")
    (<ServerRole.NODE: 'Node'>, True)
    >>> parse_enum(ServerRole, "Gateway")
    (None, False)
    """

    if isinstance(raw, enum_type):
        return raw, True
    if not isinstance(raw, str):
        return None, False
    token = _normalise(raw)
    if not token:
        return None, False
    for name, member in enum_type.__members__.items():
        if token in (_normalise(name), _normalise(str(member.value))):
            return member, True
    number, ok = parse_int(raw)
    if ok:
        try:
            return enum_type(number), True
        except ValueError:
            return None, False
    return None, False


def parse_flags(flag_type: type[E], raw: object) -> tuple[E | None, bool]:
    """Parse ``"UseMachineKeyStore, NoPrompt"`` style input into a combined flag.

    Negative values and bits outside the declared members are rejected.

    Examples
    --------
    >>> from synapse_server_config.domain.enums import CspProviderFlags
    >>> value, ok = parse_flags(CspProviderFlags, "UseMachineKeyStore, NoPrompt")
    >>> ok, int(value)
    (True, 65)
    """

    if isinstance(raw, flag_type):
        return raw, True
    if isinstance(raw, int) and not isinstance(raw, bool):
        parts: list[object] = [str(raw)]
    elif isinstance(raw, str):
        parts = list(raw.split(","))
    else:
        return None, False

    combined = 0
    for part in parts:
        number, numeric = parse_int(part)
        if numeric and number is not None and number < 0:
            return None, False
        member, ok = parse_enum(flag_type, part)
        if not ok or member is None:
            return None, False
        combined |= int(member.value)

    known = 0
    for member in flag_type.__members__.values():
        known |= int(member.value)
    if combined < 0 or combined & ~known:
        return None, False
    return flag_type(combined), True


def coerce(
    kind: Any,
    raw: object,
    current: Any = None,
    *,
    validate: Callable[[Any], bool] | None = None,
) -> tuple[Any, bool]:
    """Coerce *raw* into a value of *kind*, returning ``(current, False)`` on failure.

    Parameters
    ----------
    kind:
        ``str``, ``int``, an :class:`enum.Flag` subclass, or another
        :class:`enum.Enum` subclass.
    raw:
        Source value, usually a string.
    current:
        Value handed back unchanged when coercion fails.
    validate:
        Optional predicate applied to a successfully parsed value; a rejected
        value counts as a failed parse.

    Examples
    --------
    >>> coerce(int, "20005")
    (20005, True)
    >>> coerce(int, "70000", 20000, validate=lambda port: 0 < port < 65536)
    (20000, False)
    """

    if kind is int:
        value, ok = parse_int(raw)
    elif isinstance(kind, type) and issubclass(kind, Flag):
        value, ok = parse_flags(kind, raw)
    elif isinstance(kind, type) and issubclass(kind, Enum):
        value, ok = parse_enum(kind, raw)
    elif raw is None:
        value, ok = None, True
    else:
        value, ok = str(raw), True

    if not ok:
        return current, False
    if value is not None and validate is not None and not validate(value):
        return current, False
    return value, True


def format_value(value: object) -> str:
    """Render a typed value as its wire string; ``None`` becomes ``""``.

    Examples
    --------
    >>> from synapse_server_config.domain.enums import AuthenticationScheme, CspProviderFlags
    >>> format_value(AuthenticationScheme.NEGOTIATE)
    'Negotiate'
    >>> format_value(CspProviderFlags.USE_MACHINE_KEY_STORE | CspProviderFlags.NO_PROMPT)
    'UseMachineKeyStore, NoPrompt'
    >>> format_value(CspProviderFlags.NO_FLAGS)
    'NoFlags'
    """

    if value is None:
        return ""
    if isinstance(value, Flag):
        return _format_flags(value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _format_flags(value: Flag) -> str:
    members = type(value).__members__.values()
    names = [_wire_name(member) for member in members if member.value and (value & member) == member]
    if names:
        return ", ".join(names)
    for member in members:
        if not member.value:
            return _wire_name(member)
    return "0"


def _wire_name(member: Enum) -> str:
    """``USE_MACHINE_KEY_STORE`` -> ``UseMachineKeyStore``."""

    return "".join(part.capitalize() for part in member.name.split("_"))


def _normalise(text: str) -> str:
    return text.replace("_", "").strip().lower()
