"""
Checks that recorded MCP servers are really present in their provider

Read-only: nothing here modifies configuration.
"""

import logging
import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from bwc.core.errors import BwcError
from bwc.core.schema import NetworkServerConfig, StdioServerConfig

from .claude_cli import GATEWAY_SERVER_NAME, ClaudeCLI, build_add_args, parse_list_output
from .docker import DockerGateway, lists_gateway

logger = logging.getLogger(__name__)

ServerConfig = Union[StdioServerConfig, NetworkServerConfig]

CONNECTED = "connected"
INSTALLED = "installed"
NOT_INSTALLED = "not-installed"
GATEWAY_NOT_CONFIGURED = "gateway-not-configured"
UNKNOWN_PROVIDER = "unknown-provider"


@dataclass
class VerificationResult:
    name: str
    provider: str
    transport: str
    scope: str
    status: str
    error: Optional[str] = None
    fix_commands: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in (CONNECTED, INSTALLED)


def claude_fix_commands(name: str, server: ServerConfig) -> List[str]:
    try:
        return ["claude " + shlex.join(build_add_args(name, server))]
    except BwcError:
        return [f"bwc add --mcp {server.registryName or name} --scope {server.scope}"]


def docker_gateway_fix_commands(name: str) -> List[str]:
    return [
        "1. Setup Docker MCP gateway: bwc add --setup",
        "2. Restart Claude Code to activate gateway",
        f"3. Enable the server: docker mcp server enable {name}",
    ]


class VerificationEngine:
    """
    Compares recorded servers with what claude and docker report

    Args:
        claude: Claude CLI wrapper
        docker: Docker MCP gateway wrapper
    """

    def __init__(self, claude: ClaudeCLI, docker: DockerGateway):
        self.claude = claude
        self.docker = docker

    def verify(self, servers: Dict[str, ServerConfig]) -> List[VerificationResult]:
        if not servers:
            return []

        list_output = self.claude.list_output()
        claude_servers = {
            s.name: s for s in parse_list_output(list_output) if s.name != GATEWAY_SERVER_NAME
        }
        gateway_configured = lists_gateway(list_output)

        docker_servers: List[str] = []
        if gateway_configured and any(s.provider == "docker" for s in servers.values()):
            docker_servers = self.docker.list_installed()

        results = []
        for name, server in servers.items():
            result = VerificationResult(
                name=name,
                provider=server.provider,
                transport=server.transport,
                scope=server.scope,
                status=NOT_INSTALLED,
            )

            if server.provider == "claude":
                listed = claude_servers.get(name)
                if listed is None:
                    result.error = "Not found in Claude CLI configuration"
                    result.fix_commands = claude_fix_commands(name, server)
                else:
                    result.status = CONNECTED if listed.connected else INSTALLED

            elif server.provider == "docker":
                docker_name = server.registryName or name
                if not gateway_configured:
                    result.status = GATEWAY_NOT_CONFIGURED
                    result.error = "Docker MCP gateway not configured in Claude CLI"
                    result.fix_commands = docker_gateway_fix_commands(docker_name)
                elif name in docker_servers or docker_name in docker_servers:
                    result.status = CONNECTED
                else:
                    result.error = "Server not enabled in Docker MCP Toolkit"
                    result.fix_commands = [f"docker mcp server enable {docker_name}"]

            else:
                result.status = UNKNOWN_PROVIDER
                result.error = f"Unknown provider: {server.provider}"

            logger.debug(f"Verified {name}: {result.status}")
            results.append(result)

        return results


def format_verification_issues(results: List[VerificationResult]) -> List[str]:
    """Human-readable lines for every failing result"""
    lines: List[str] = []
    for result in results:
        if result.ok or not result.error:
            continue
        lines.append(f"  {result.name}:")
        lines.append(f"    Issue: {result.error}")
        if len(result.fix_commands) == 1:
            lines.append(f"    Fix:   {result.fix_commands[0]}")
        elif result.fix_commands:
            lines.append("    Fix:   " + "\n           ".join(result.fix_commands))
    return lines
