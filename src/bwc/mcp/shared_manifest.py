"""
Project-shared MCP manifest (.mcp.json)

Project-scoped servers are written here so everyone working in the
repository gets the same MCP setup.
"""

import copy
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from bwc.core.config import write_json_atomic
from bwc.core.errors import BwcError, FileSystemError
from bwc.core.paths import SHARED_MANIFEST_FILE
from bwc.core.schema import NetworkServerConfig, StdioServerConfig, utc_now

logger = logging.getLogger(__name__)

ServerConfig = Union[StdioServerConfig, NetworkServerConfig]


def split_env_override(text: str) -> Optional[Tuple[str, str]]:
    """Split KEY=VALUE on the first '='"""
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value


def interpolate_env(key: str, value: str) -> str:
    """${KEY:-VALUE} so a developer's own environment wins; values with $ are kept"""
    if "$" in value:
        return value
    return f"${{{key}:-{value}}}"


def extract_server_spec(template: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Pull one server's connection spec out of a rendered template"""
    servers = template.get("mcpServers") if isinstance(template, dict) else None
    if isinstance(servers, dict):
        spec = servers.get(name)
        if isinstance(spec, dict):
            return copy.deepcopy(spec)
    elif isinstance(template, dict) and ("command" in template or "url" in template):
        return copy.deepcopy(template)
    raise BwcError(f"Failed to parse server configuration for {name}")


def docker_entry(image: str) -> Dict[str, Any]:
    """Connection spec that runs a Docker MCP image over stdio"""
    return {"command": "docker", "args": ["run", "-i", "--rm", image]}


def to_shared_entry(server: ServerConfig) -> Dict[str, Any]:
    """Stored record -> .mcp.json entry. Network entries carry the transport as 'type'."""
    entry: Dict[str, Any] = {}
    if isinstance(server, NetworkServerConfig):
        entry["type"] = server.transport
        entry["url"] = server.url
        if server.headers:
            entry["headers"] = dict(server.headers)
        return entry

    if server.command:
        entry["command"] = server.command
    if server.args:
        entry["args"] = list(server.args)
    if server.env:
        entry["env"] = dict(server.env)
    return entry


def from_shared_entry(name: str, entry: Dict[str, Any], provider: str = "claude") -> ServerConfig:
    """.mcp.json entry -> stored record (project scope)"""
    common = {"provider": provider, "scope": "project", "installedAt": utc_now(), "registryName": name}
    transport = entry.get("type") or entry.get("transport")
    if transport in ("sse", "http"):
        return NetworkServerConfig(
            transport=transport,
            url=entry.get("url", ""),
            headers=entry.get("headers") or {},
            **common,
        )
    return StdioServerConfig(
        command=entry.get("command"),
        args=[str(a) for a in entry.get("args") or []],
        env={k: str(v) for k, v in (entry.get("env") or {}).items()},
        **common,
    )


class SharedManifest:
    """
    Reads and writes <project>/.mcp.json

    Args:
        project_dir: Directory holding the manifest
    """

    def __init__(self, project_dir: Path):
        self.project_dir = Path(project_dir)
        self.path = self.project_dir / SHARED_MANIFEST_FILE

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Dict[str, Any]:
        """Read the manifest; a missing or corrupt file yields an empty one"""
        if not self.path.exists():
            return {"mcpServers": {}}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            backup = self.path.with_name(self.path.name + ".bak")
            logger.warning(f"Invalid JSON in {self.path}: {e}; backed up to {backup}")
            try:
                shutil.copy2(self.path, backup)
            except OSError as copy_error:
                raise FileSystemError(self.path, f"invalid JSON and backup failed: {copy_error}") from copy_error
            return {"mcpServers": {}}
        except OSError as e:
            raise FileSystemError(self.path, e.strerror or str(e)) from e

        if not isinstance(data, dict):
            data = {}
        if not isinstance(data.get("mcpServers"), dict):
            data["mcpServers"] = {}
        return data

    def save(self, data: Dict[str, Any]) -> None:
        write_json_atomic(self.path, data)
        logger.debug(f"Wrote {self.path}")

    def servers(self) -> Dict[str, Any]:
        return self.load()["mcpServers"]

    def has_server(self, name: str) -> bool:
        return name in self.servers()

    def merge_server(
        self,
        name: str,
        rendered_template: Dict[str, Any],
        env_overrides: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """
        Add or replace one server in the manifest

        Args:
            name: Server name
            rendered_template: Template with inputs applied (wrapped or bare spec)
            env_overrides: KEY=VALUE strings written into the server's env

        Returns:
            The spec that was written
        """
        spec = extract_server_spec(rendered_template, name)

        for override in env_overrides:
            pair = split_env_override(override)
            if pair is None:
                logger.warning(f"Ignoring malformed env override: {override!r}")
                continue
            key, value = pair
            env = spec.get("env")
            if not isinstance(env, dict):
                env = spec["env"] = {}
            env[key] = interpolate_env(key, value)

        data = self.load()
        data["mcpServers"][name] = spec
        self.save(data)
        logger.info(f"Added {name} to {self.path}")
        return spec

    def remove_server(self, name: str) -> bool:
        """Delete a server; False when it was not there"""
        if not self.path.exists():
            return False
        data = self.load()
        if name not in data["mcpServers"]:
            return False
        del data["mcpServers"][name]
        self.save(data)
        logger.info(f"Removed {name} from {self.path}")
        return True
