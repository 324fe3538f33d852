"""Filesystem location of the configuration file.

Purpose
-------
Implement :class:`synapse_server_config.application.ports.PathResolver`. The
conventional location is ``Synapse.Server.config.yaml`` next to the installed
package; the ``SYNAPSE_SERVER_CONFIG`` environment variable overrides it for
custom deployments and tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

from ...observability import log_debug

CONFIG_FILE_NAME: Final[str] = "Synapse.Server.config.yaml"
CONFIG_PATH_ENV: Final[str] = "SYNAPSE_SERVER_CONFIG"


class DefaultPathResolver:
    """Resolve the configuration file path for the current installation.

    Examples
    --------
    >>> resolver = DefaultPathResolver(env={"SYNAPSE_SERVER_CONFIG": "/srv/synapse/server.yaml"})
    >>> resolver.config_file().as_posix()
    '/srv/synapse/server.yaml'
    >>> DefaultPathResolver(env={"SYNAPSE_SERVER_CONFIG": ""}, install_dir=Path("/opt/synapse")).config_file().as_posix()
    '/opt/synapse/Synapse.Server.config.yaml'
    """

    def __init__(
        self,
        *,
        env: dict[str, str] | None = None,
        install_dir: Path | None = None,
    ) -> None:
        """Store context required to resolve the file location.

        Parameters
        ----------
        env:
            Optional environment mapping layered over ``os.environ`` (useful
            for deterministic tests).
        install_dir:
            Directory that holds the conventional file. Defaults to the
            directory of the installed package.
        """

        self.env = {**os.environ, **(env or {})}
        self.install_dir = install_dir or Path(__file__).resolve().parents[2]

    def config_file(self) -> Path:
        override = self.env.get(CONFIG_PATH_ENV, "").strip()
        if override:
            path = Path(override).expanduser()
            source = "env"
        else:
            path = self.install_dir / CONFIG_FILE_NAME
            source = "install_dir"
        log_debug("config_path_resolved", tier="file", path=str(path), source=source)
        return path
