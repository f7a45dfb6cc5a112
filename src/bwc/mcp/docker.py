"""
Docker MCP Toolkit integration

Servers from the Docker catalog are enabled in the toolkit and reach
Claude Code through a single gateway server named docker-toolkit.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from bwc.core.errors import SubprocessError

from .claude_cli import GATEWAY_SERVER_NAME, ClaudeCLI
from .runner import ProcessResult, ProcessRunner

logger = logging.getLogger(__name__)

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")
CATALOG_LINE = re.compile(r"^([a-zA-Z0-9_-]+):\s*(.+)$")
SEPARATOR_LINE = re.compile(r"^[─-]+$")

GATEWAY_ARGS = ["mcp", "gateway", "run"]


def lists_gateway(list_output: str) -> bool:
    """True when `claude mcp list` output includes the Docker MCP gateway"""
    return GATEWAY_SERVER_NAME in list_output or " ".join(GATEWAY_ARGS) in list_output


def is_wsl(proc_version: Path = Path("/proc/version")) -> bool:
    """Detect Windows Subsystem for Linux"""
    if os.environ.get("WSL_DISTRO_NAME"):
        return True
    try:
        text = proc_version.read_text(encoding="utf-8").lower()
    except OSError:
        return False
    return "microsoft" in text or "wsl" in text


def docker_command() -> str:
    """Docker executable name; WSL talks to Docker Desktop through docker.exe"""
    return "docker.exe" if is_wsl() else "docker"


@dataclass
class CatalogEntry:
    name: str
    description: str = ""


@dataclass
class DockerStatus:
    """Snapshot of the local Docker MCP setup"""

    docker_installed: bool = False
    toolkit_available: bool = False
    gateway_configured: bool = False
    installed_servers: List[str] = field(default_factory=list)


def parse_catalog_output(stdout: str) -> List[CatalogEntry]:
    """
    Parse `docker mcp catalog show`

    Handles both the one-line "name: description" layout and the
    indented layout (name at two spaces, description lines at four or more).
    """
    entries: List[CatalogEntry] = []
    current: Optional[CatalogEntry] = None

    for raw in stdout.splitlines():
        line = ANSI_ESCAPE.sub("", raw)
        stripped = line.strip()
        if (
            not stripped
            or "MCP Server Directory" in stripped
            or "servers available" in stripped
            or SEPARATOR_LINE.match(stripped)
        ):
            continue

        match = CATALOG_LINE.match(stripped)
        if match:
            entries.append(CatalogEntry(match.group(1), match.group(2)))
            continue

        indent = len(line) - len(line.lstrip(" "))
        if indent == 2:
            if current:
                entries.append(current)
            current = CatalogEntry(stripped)
        elif current and indent >= 4:
            current.description = f"{current.description} {stripped}".strip()

    if current:
        entries.append(current)
    return entries


def parse_server_list(stdout: str) -> List[str]:
    """`docker mcp server list` prints a comma separated list"""
    return [name.strip() for name in stdout.split(",") if name.strip()]


class DockerGateway:
    """
    Runs `docker mcp ...` and checks the gateway registration in Claude Code

    Args:
        runner: Process runner
        claude: Claude CLI wrapper used for gateway checks
        executable: Docker executable (platform default when omitted)
    """

    def __init__(self, runner: ProcessRunner, claude: ClaudeCLI, executable: Optional[str] = None):
        self.runner = runner
        self.claude = claude
        self.executable = executable or docker_command()

    def run(self, args: List[str]) -> ProcessResult:
        return self.runner.run([self.executable, *args])

    def _check(self, args: List[str]) -> ProcessResult:
        result = self.run(args)
        if not result.ok:
            raise SubprocessError([self.executable, *args], result.returncode, result.stderr)
        return result

    def is_docker_available(self) -> bool:
        result = self.run(["--version"])
        return result.ok and "Docker version" in result.stdout

    def is_toolkit_available(self) -> bool:
        return self.run(["mcp", "--version"]).ok

    def is_gateway_configured(self) -> bool:
        """True when Claude Code lists the docker-toolkit gateway"""
        return lists_gateway(self.claude.list_output())

    def list_installed(self) -> List[str]:
        result = self.run(["mcp", "server", "list"])
        if not result.ok:
            logger.warning("Failed to list installed Docker MCP servers")
            return []
        return parse_server_list(result.stdout)

    def is_installed(self, name: str) -> bool:
        return name in self.list_installed()

    def enable_server(self, name: str) -> ProcessResult:
        logger.info(f"Enabling Docker MCP server: {name}")
        return self._check(["mcp", "server", "enable", name])

    def disable_server(self, name: str) -> ProcessResult:
        logger.info(f"Disabling Docker MCP server: {name}")
        return self._check(["mcp", "server", "disable", name])

    def catalog(self) -> List[CatalogEntry]:
        result = self.run(["mcp", "catalog", "show"])
        if not result.ok:
            logger.warning("Failed to fetch Docker MCP catalog")
            logger.debug(f"Error details: {result.stderr.strip()}")
            return []
        return parse_catalog_output(result.stdout)

    def search(self, query: str) -> List[CatalogEntry]:
        term = query.lower()
        return [e for e in self.catalog() if term in e.name.lower() or term in e.description.lower()]

    def setup_gateway(self, scope: str = "user") -> ProcessResult:
        """Register `<docker> mcp gateway run` with Claude Code as docker-toolkit"""
        args = ["mcp", "add", GATEWAY_SERVER_NAME, "--scope", scope, "--", self.executable, *GATEWAY_ARGS]
        return self.claude.add_raw(args)

    def status(self) -> DockerStatus:
        status = DockerStatus()
        status.docker_installed = self.is_docker_available()
        status.toolkit_available = status.docker_installed and self.is_toolkit_available()
        status.gateway_configured = self.is_gateway_configured()
        if status.toolkit_available:
            status.installed_servers = self.list_installed()
        return status
