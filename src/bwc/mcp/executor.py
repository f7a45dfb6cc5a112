"""
Carrying out an install plan against its provider
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from bwc.core.errors import NoInstallationMethod
from bwc.core.schema import (
    InstallationMethod,
    NetworkServerConfig,
    ServerDescriptor,
    StdioServerConfig,
)

from .claude_cli import ClaudeCLI
from .docker import DockerGateway
from .shared_manifest import to_shared_entry

logger = logging.getLogger(__name__)

ServerConfig = Union[StdioServerConfig, NetworkServerConfig]

INSTALLED = "installed"
GATEWAY_NOT_CONFIGURED = "gateway-not-configured"
MANUAL = "manual"
SKIPPED = "skipped"


@dataclass
class InstallPlan:
    """Everything needed to install one MCP server"""

    name: str
    provider: str
    scope: str
    server: Optional[ServerConfig] = None
    descriptor: Optional[ServerDescriptor] = None
    method: Optional[InstallationMethod] = None
    values: Dict[str, Any] = field(default_factory=dict)
    manifest_template: Optional[Dict[str, Any]] = None
    env_overrides: List[str] = field(default_factory=list)
    docker_name: Optional[str] = None

    @property
    def experimental(self) -> bool:
        return self.descriptor is not None and self.descriptor.is_experimental


@dataclass
class InstallOutcome:
    """Result of executing a plan"""

    name: str
    provider: str
    status: str
    message: str = ""
    remediation: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    requirements: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    config: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status in (INSTALLED, SKIPPED)


def gateway_remediation(name: str) -> List[str]:
    return [
        "1. Setup Docker MCP gateway: bwc add --setup",
        "2. Restart Claude Code to activate gateway",
        f"3. Enable the server: docker mcp server enable {name}",
    ]


class InstallExecutor:
    """
    Performs the provider side of an install

    Args:
        claude: Claude CLI wrapper
        docker: Docker MCP gateway wrapper
    """

    def __init__(self, claude: ClaudeCLI, docker: DockerGateway):
        self.claude = claude
        self.docker = docker

    def execute(self, plan: InstallPlan) -> InstallOutcome:
        if plan.provider == "docker":
            return self._docker(plan)
        if plan.provider == "claude":
            return self._claude(plan)
        if plan.provider == "manual":
            return self._manual(plan)
        raise NoInstallationMethod(f"Unsupported provider '{plan.provider}' for {plan.name}")

    def _docker(self, plan: InstallPlan) -> InstallOutcome:
        target = plan.docker_name or plan.name
        if not self.docker.is_gateway_configured():
            logger.warning("Docker MCP gateway is not configured in Claude Code")
            return InstallOutcome(
                name=plan.name,
                provider="docker",
                status=GATEWAY_NOT_CONFIGURED,
                message="Docker MCP gateway is not configured. Run 'bwc add --setup' first.",
                remediation=gateway_remediation(target),
            )

        self.docker.enable_server(target)
        return InstallOutcome(
            name=plan.name,
            provider="docker",
            status=INSTALLED,
            message=f"Server '{target}' enabled in Docker MCP Toolkit",
        )

    def _claude(self, plan: InstallPlan) -> InstallOutcome:
        if plan.server is None:
            raise NoInstallationMethod(f"No server configuration to install for {plan.name}")

        if not self.claude.is_available():
            logger.warning("claude CLI not found; configuration must be added by hand")
            return InstallOutcome(
                name=plan.name,
                provider="claude",
                status=MANUAL,
                message="Claude CLI not found. Add this configuration to Claude Code manually:",
                config={"mcpServers": {plan.name: to_shared_entry(plan.server)}},
            )

        result = self.claude.add_server(plan.name, plan.server, plan.scope)
        return InstallOutcome(
            name=plan.name,
            provider="claude",
            status=INSTALLED,
            message=result.stdout.strip() or f"Configured {plan.name} in Claude Code ({plan.scope} scope)",
        )

    def _manual(self, plan: InstallPlan) -> InstallOutcome:
        method = plan.method
        config = None
        if method and method.config_example:
            try:
                config = json.loads(method.config_example)
            except json.JSONDecodeError:
                logger.debug(f"config_example for {plan.name} is not valid JSON")
        return InstallOutcome(
            name=plan.name,
            provider="manual",
            status=MANUAL,
            message=f"{plan.name} requires manual installation",
            steps=list(method.steps) if method else [],
            requirements=list(method.requirements) if method else [],
            config=config,
        )
