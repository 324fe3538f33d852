"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the facade depends on so the persisted file
and its location can be swapped (for example, a temporary directory in tests)
without touching the resolution logic.

Contents
--------
* :class:`ConfigStore` – persists and restores a complete configuration.
* :class:`PathResolver` – yields the conventional configuration file path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..domain.settings import ServerConfiguration


@runtime_checkable
class ConfigStore(Protocol):
    """Serialize a configuration to, and restore it from, one structured file.

    Why
    ----
    The merge engine treats persistence as an external collaborator: it only
    needs to know whether a previous result exists, read it, and overwrite it.

    Contract
    --------
    ``save`` writes every field, including those still at their defaults, so
    a later ``load`` reconstructs a complete object. ``load`` on a missing
    file raises :class:`~synapse_server_config.domain.errors.NotFound`;
    callers check :meth:`exists` first.
    """

    path: Path

    def exists(self) -> bool:
        """Return ``True`` when a persisted configuration is present."""

    def load(self) -> ServerConfiguration:
        """Read and fully deserialize the persisted configuration."""

    def save(self, config: ServerConfiguration) -> None:
        """Overwrite the persisted configuration with *config*."""


@runtime_checkable
class PathResolver(Protocol):
    """Locate the configuration file for the current installation."""

    def config_file(self) -> Path:
        """Return the path of the configuration file."""
