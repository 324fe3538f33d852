"""Adapter contract tests for the default ports implementation.

Verify the default adapters continue to satisfy the application-layer ports
defined in ``src/synapse_server_config/application/ports.py`` so the facade can
keep depending on abstractions only.
"""

from __future__ import annotations

from pathlib import Path

from synapse_server_config.adapters.path_resolvers.default import DefaultPathResolver
from synapse_server_config.adapters.store.structured import StructuredConfigStore
from synapse_server_config.application import ports
from synapse_server_config.application.defaults import default_configuration
from synapse_server_config.domain.enums import ServerRole


def test_structured_store_contract(tmp_path: Path) -> None:
    """StructuredConfigStore must fulfil the ConfigStore protocol end to end."""

    store = StructuredConfigStore(tmp_path / "server.yaml")
    assert isinstance(store, ports.ConfigStore)
    assert store.exists() is False
    store.save(default_configuration(ServerRole.NODE))
    assert store.exists() is True
    assert store.load().role is ServerRole.NODE


def test_default_path_resolver_contract(tmp_path: Path) -> None:
    resolver = DefaultPathResolver(env={"SYNAPSE_SERVER_CONFIG": ""}, install_dir=tmp_path)
    assert isinstance(resolver, ports.PathResolver)
    assert isinstance(resolver.config_file(), Path)
