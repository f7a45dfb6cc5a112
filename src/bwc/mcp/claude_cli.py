"""
Wrapper around the `claude` CLI's `mcp` subcommands
"""

import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from bwc.core.errors import BwcError, SubprocessError
from bwc.core.schema import NetworkServerConfig, StdioServerConfig

from .runner import ProcessResult, ProcessRunner

logger = logging.getLogger(__name__)

CLAUDE_CANDIDATE_PATHS = [
    "~/.claude/local/claude",
    "/usr/local/bin/claude",
    "/opt/homebrew/bin/claude",
    "~/.local/bin/claude",
]

# linear-server: https://mcp.linear.app/sse (SSE) - ✓ Connected
LIST_LINE = re.compile(r"^([^:\s][^:]*):\s+(.*)\s+-\s+(.+)$")

GATEWAY_SERVER_NAME = "docker-toolkit"

ServerConfig = Union[StdioServerConfig, NetworkServerConfig]


@dataclass
class ListedServer:
    """One line of `claude mcp list`"""

    name: str
    target: str
    status_text: str

    @property
    def connected(self) -> bool:
        return "Connected" in self.status_text


def find_claude_cli(home: Optional[Path] = None) -> Optional[str]:
    """Locate the claude executable, preferring the known install locations"""
    home = home or Path.home()
    for candidate in CLAUDE_CANDIDATE_PATHS:
        path = Path(candidate.replace("~", str(home), 1)) if candidate.startswith("~") else Path(candidate)
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
    return shutil.which("claude")


def build_add_args(name: str, server: ServerConfig, scope: Optional[str] = None) -> List[str]:
    """
    Arguments for `claude mcp add` (without the executable)

    stdio:    mcp add --scope S [--env K=V]... NAME -- COMMAND ARGS...
    sse/http: mcp add --scope S --transport T [--header "K: V"]... NAME URL
    """
    args = ["mcp", "add", "--scope", scope or server.scope]

    if isinstance(server, NetworkServerConfig):
        args.extend(["--transport", server.transport])
        for key, value in server.headers.items():
            args.extend(["--header", f"{key}: {value}"])
        args.extend([name, server.url])
        return args

    if not server.command:
        raise BwcError(f"MCP server '{name}' has no command to run")
    for key, value in server.env.items():
        args.extend(["--env", f"{key}={value}"])
    args.append(name)
    args.extend(["--", server.command, *server.args])
    return args


def parse_list_output(stdout: str) -> List[ListedServer]:
    """Parse `claude mcp list` output into entries"""
    servers = []
    for line in stdout.splitlines():
        match = LIST_LINE.match(line.strip())
        if match:
            servers.append(ListedServer(match.group(1).strip(), match.group(2).strip(), match.group(3).strip()))
    return servers


class ClaudeCLI:
    """
    Runs `claude mcp ...` through a ProcessRunner

    Args:
        runner: Process runner
        executable: Path to claude (located lazily when omitted)
        home: Home directory searched for local installs
    """

    def __init__(self, runner: ProcessRunner, executable: Optional[str] = None, home: Optional[Path] = None):
        self.runner = runner
        self.home = home
        self._executable = executable
        self._searched = executable is not None

    @property
    def executable(self) -> Optional[str]:
        if not self._searched:
            self._executable = find_claude_cli(self.home)
            self._searched = True
        return self._executable

    def run(self, args: List[str]) -> ProcessResult:
        if not self.executable:
            return ProcessResult(stderr="claude CLI not found", returncode=127)
        return self.runner.run([self.executable, *args])

    def is_available(self) -> bool:
        return self.executable is not None and self.run(["--version"]).ok

    def version(self) -> Optional[str]:
        result = self.run(["--version"])
        return result.stdout.strip() if result.ok else None

    def add_server(self, name: str, server: ServerConfig, scope: Optional[str] = None) -> ProcessResult:
        """Register a server; raises SubprocessError on failure"""
        args = build_add_args(name, server, scope)
        result = self.run(args)
        if not result.ok:
            raise SubprocessError([self.executable or "claude", *args], result.returncode, result.stderr)
        logger.info(f"Added {name} to Claude Code ({scope or server.scope} scope)")
        return result

    def add_raw(self, args: List[str]) -> ProcessResult:
        result = self.run(args)
        if not result.ok:
            raise SubprocessError([self.executable or "claude", *args], result.returncode, result.stderr)
        return result

    def remove_server(self, name: str, scope: Optional[str] = None) -> bool:
        """Remove a server. Returns False when claude reports it was not there."""
        args = ["mcp", "remove"]
        if scope:
            args.extend(["--scope", scope])
        args.append(name)
        result = self.run(args)
        if result.ok:
            return True
        if "not found" in result.stderr.lower() or "no mcp server" in result.stderr.lower():
            return False
        raise SubprocessError([self.executable or "claude", *args], result.returncode, result.stderr)

    def list_output(self) -> str:
        result = self.run(["mcp", "list"])
        return result.stdout if result.ok else ""

    def list_servers(self) -> List[ListedServer]:
        return parse_list_output(self.list_output())

    def get_server(self, name: str) -> Optional[str]:
        result = self.run(["mcp", "get", name])
        return result.stdout if result.ok else None

    def has_server(self, name: str) -> bool:
        return any(s.name == name for s in self.list_servers())
