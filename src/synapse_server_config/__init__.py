"""Public package surface for ``synapse_server_config``.

``import synapse_server_config`` exposes the configuration facade, the value
objects it returns, and the logging hooks host processes attach handlers to.
"""

from __future__ import annotations

from .application.merge import DEFAULT_POLICY, MergePolicy
from .core import ServerConfigService, configure, configure_object, get_defaults, load_config
from .domain.enums import AuthenticationScheme, CspProviderFlags, ServerRole
from .domain.errors import ConfigError, InvalidFormat, NotFound, ValidationError
from .domain.settings import ControllerSettings, NodeSettings, ServerConfiguration
from .observability import bind_trace_id, get_logger

__all__ = [
    "AuthenticationScheme",
    "ConfigError",
    "ControllerSettings",
    "CspProviderFlags",
    "DEFAULT_POLICY",
    "InvalidFormat",
    "MergePolicy",
    "NodeSettings",
    "NotFound",
    "ServerConfigService",
    "ServerConfiguration",
    "ServerRole",
    "ValidationError",
    "bind_trace_id",
    "configure",
    "configure_object",
    "get_defaults",
    "get_logger",
    "load_config",
]
