"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the persistence adapter, the facade, and
the CLI. Only failures that must abort a resolution live here; a bad override
string is not an error and never reaches this module.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`InvalidFormat` – the persisted file could not be parsed.
* :class:`ValidationError` – operator input had the wrong shape.
* :class:`NotFound` – the persisted file is missing when read directly.

System Role
-----------
The store raises :class:`InvalidFormat` and :class:`NotFound`; the facade lets
both propagate. Callers catch :class:`ConfigError` to handle every library
failure uniformly. Plain :class:`OSError` (permissions, disk full) is never
wrapped.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``synapse_server_config``."""


class InvalidFormat(ConfigError):
    """Raised when the persisted configuration file cannot be turned into a configuration.

    Typical Sources
    ---------------
    Malformed YAML/JSON, a document that is not a mapping, or a typed field
    (role, port, enum) whose stored value does not parse.
    """


class ValidationError(ConfigError):
    """Signifies an unknown server role requested by the caller.

    Raised by :func:`synapse_server_config.core.as_role`. A malformed CLI
    ``--set`` assignment is reported by Click as a usage error instead.
    """


class NotFound(ConfigError):
    """Represents a missing configuration file.

    The facade checks for existence and seeds a default file before reading,
    so this only surfaces when the store is used directly.
    """
