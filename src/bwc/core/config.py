"""
Config store for bwc

Loads one config file (project or user level), keeps it in memory as a
BwcConfig and writes it back atomically after every mutation.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import ValidationError

from .errors import FileSystemError
from .migration import migrate_config
from .paths import PROJECT_CONFIG_DIR, resolve_install_path
from .schema import (
    BwcConfig,
    NetworkServerConfig,
    StdioServerConfig,
    parse_server_config,
)

logger = logging.getLogger(__name__)

ConfigScope = Literal["project", "user"]
ServerConfig = Union[StdioServerConfig, NetworkServerConfig]


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to a temp file beside path, then rename over it"""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise FileSystemError(path, e.strerror or str(e)) from e


class ConfigStore:
    """
    In-memory view of a single bwc config file

    Args:
        path: Location of the config file
        scope: "project" or "user"
        config: Parsed config (defaults to a fresh one for the scope)
        home: Home directory used for ~ expansion
    """

    def __init__(
        self,
        path: Path,
        scope: ConfigScope,
        config: Optional[BwcConfig] = None,
        home: Optional[Path] = None,
    ):
        self.path = Path(path)
        self.scope: ConfigScope = scope
        self.home = home or Path.home()
        self.config = config or BwcConfig.default(project=scope == "project")

    @classmethod
    def load(cls, path: Path, scope: ConfigScope, home: Optional[Path] = None) -> "ConfigStore":
        """Read, migrate and validate a config file. Nothing is written back."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise FileSystemError(path, f"invalid JSON: {e}") from e
        except OSError as e:
            raise FileSystemError(path, e.strerror or str(e)) from e

        data = migrate_config(raw)
        defaults = BwcConfig.default(project=scope == "project").paths.model_dump()
        paths = data.get("paths", {})
        if isinstance(paths, dict):
            data["paths"] = {**defaults, **paths}

        try:
            config = BwcConfig.model_validate(data)
        except ValidationError as e:
            raise FileSystemError(path, f"invalid config: {e}") from e

        logger.debug(f"Loaded {scope} config from {path}")
        return cls(path, scope, config, home=home)

    def save(self) -> None:
        """Persist the config"""
        write_json_atomic(self.path, self.config.to_json_dict())
        logger.debug(f"Saved config to {self.path}")

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    @property
    def is_project(self) -> bool:
        return self.scope == "project"

    @property
    def project_root(self) -> Path:
        """Directory that relative install paths are anchored to"""
        if not self.is_project:
            return self.home
        parent = self.path.parent
        if parent.name == PROJECT_CONFIG_DIR:
            return parent.parent
        return parent

    @property
    def location(self) -> str:
        return str(self.path)

    @property
    def registry_url(self) -> str:
        return self.config.registry

    def subagents_path(self) -> Path:
        return resolve_install_path(self.config.paths.subagents, self.project_root, self.home)

    def commands_path(self) -> Path:
        return resolve_install_path(self.config.paths.commands, self.project_root, self.home)

    # ------------------------------------------------------------------
    # Subagents and commands
    # ------------------------------------------------------------------

    def installed_subagents(self) -> List[str]:
        return list(self.config.installed.subagents)

    def installed_commands(self) -> List[str]:
        return list(self.config.installed.commands)

    def add_installed_subagent(self, name: str) -> None:
        if name not in self.config.installed.subagents:
            self.config.installed.subagents.append(name)
            self.save()

    def remove_installed_subagent(self, name: str) -> bool:
        if name not in self.config.installed.subagents:
            return False
        self.config.installed.subagents.remove(name)
        self.save()
        return True

    def add_installed_command(self, name: str) -> None:
        if name not in self.config.installed.commands:
            self.config.installed.commands.append(name)
            self.save()

    def remove_installed_command(self, name: str) -> bool:
        if name not in self.config.installed.commands:
            return False
        self.config.installed.commands.remove(name)
        self.save()
        return True

    # ------------------------------------------------------------------
    # MCP servers
    # ------------------------------------------------------------------

    def installed_mcp_servers(self) -> List[str]:
        return list(self.config.installed.mcpServers.keys())

    def add_installed_mcp_server(self, name: str, server: Union[ServerConfig, Dict[str, Any]]) -> None:
        """Record (or replace) an installed MCP server"""
        if isinstance(server, dict):
            server = parse_server_config(server)
        self.config.installed.mcpServers[name] = server
        self.save()
        logger.debug(f"Recorded MCP server {name} ({server.provider}/{server.transport})")

    def remove_installed_mcp_server(self, name: str) -> bool:
        if name not in self.config.installed.mcpServers:
            return False
        del self.config.installed.mcpServers[name]
        self.save()
        return True

    def get_mcp_server_config(self, name: str) -> Optional[ServerConfig]:
        return self.config.installed.mcpServers.get(name)

    def get_all_mcp_server_configs(self) -> Dict[str, ServerConfig]:
        return dict(self.config.installed.mcpServers)

    def all_dependencies(self) -> Dict[str, List[str]]:
        """Everything this config declares, by kind"""
        return {
            "subagents": self.installed_subagents(),
            "commands": self.installed_commands(),
            "mcpServers": self.installed_mcp_servers(),
        }

    def __repr__(self) -> str:
        return f"ConfigStore(scope={self.scope!r}, path={str(self.path)!r})"
