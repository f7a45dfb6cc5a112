"""
MCP server install orchestration

Ties together method selection, user inputs, the provider executor,
the shared .mcp.json manifest and the config store.
"""

import json
import logging
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from bwc.core.config import ConfigStore
from bwc.core.errors import (
    BwcError,
    DescriptorNotFound,
    GatewayNotConfigured,
    InputValidationError,
    NoInstallationMethod,
    SubprocessError,
)
from bwc.core.schema import (
    InstallationMethod,
    NetworkServerConfig,
    ServerDescriptor,
    StdioServerConfig,
)
from bwc.utils.validators import (
    parse_env_pairs,
    parse_headers,
    validate_item_name,
    validate_scope,
    validate_transport,
)

from .claude_cli import ClaudeCLI
from .docker import DockerGateway
from .executor import GATEWAY_NOT_CONFIGURED, SKIPPED, InstallExecutor, InstallOutcome, InstallPlan
from .inputs import UserInputPipeline
from .selector import InstallHints, provider_for, resolve_bwc_method, select_method
from .shared_manifest import (
    SharedManifest,
    docker_entry,
    extract_server_spec,
    interpolate_env,
    to_shared_entry,
)

logger = logging.getLogger(__name__)

ServerConfig = Union[StdioServerConfig, NetworkServerConfig]

EXPERIMENTAL_WARNING = (
    "This is an experimental server. Review its code and security implications "
    "before relying on it or committing it to version control."
)


@dataclass
class BulkResult:
    """Aggregate result of installing several items one after another"""

    outcomes: List[InstallOutcome] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.outcomes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> List[str]:
        return [o.name for o in self.outcomes]


def _wrap(name: str, spec: Dict[str, Any]) -> Dict[str, Any]:
    return {"mcpServers": {name: spec}}


def server_from_spec(
    spec: Dict[str, Any],
    provider: str,
    scope: str,
    descriptor: Optional[ServerDescriptor] = None,
) -> ServerConfig:
    """Stored record for a rendered connection spec"""
    common: Dict[str, Any] = {"provider": provider, "scope": scope}
    if descriptor is not None:
        common["registryName"] = descriptor.name
        common["verificationStatus"] = descriptor.verification.status

    transport = spec.get("type") or spec.get("transport")
    if transport in ("sse", "http") or ("url" in spec and "command" not in spec):
        return NetworkServerConfig(
            transport=transport if transport in ("sse", "http") else "sse",
            url=spec["url"],
            headers={k: str(v) for k, v in (spec.get("headers") or {}).items()},
            **common,
        )
    return StdioServerConfig(
        command=spec.get("command"),
        args=[str(a) for a in spec.get("args") or []],
        env={k: str(v) for k, v in (spec.get("env") or {}).items()},
        **common,
    )


class McpInstaller:
    """
    Adds, re-installs and removes MCP servers for one config

    Args:
        store: Active config store
        executor: Provider executor
        manifest: Shared .mcp.json manifest for project scope
        registry: Registry client (find_mcp_server)
        pipeline: User input pipeline
    """

    def __init__(
        self,
        store: ConfigStore,
        executor: InstallExecutor,
        manifest: SharedManifest,
        registry: Any = None,
        pipeline: Optional[UserInputPipeline] = None,
    ):
        self.store = store
        self.executor = executor
        self.manifest = manifest
        self.registry = registry
        self.pipeline = pipeline or UserInputPipeline()

    @property
    def claude(self) -> ClaudeCLI:
        return self.executor.claude

    @property
    def docker(self) -> DockerGateway:
        return self.executor.docker

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def find_descriptor(self, name: str) -> ServerDescriptor:
        if self.registry is None:
            raise DescriptorNotFound("MCP server", name)
        descriptor = self.registry.find_mcp_server(name)
        if descriptor is None:
            raise DescriptorNotFound("MCP server", name)
        return descriptor

    def plan(
        self,
        name: str,
        scope: str = "local",
        hints: Optional[InstallHints] = None,
        inputs: Optional[Dict[str, Any]] = None,
        env: Sequence[str] = (),
    ) -> InstallPlan:
        """
        Build an install plan for a registry server

        Raises:
            DescriptorNotFound, NoInstallationMethod, InputValidationError
        """
        validate_scope(scope)
        descriptor = self.find_descriptor(name)
        method = select_method(descriptor, hints)
        if method.type == "bwc":
            method = resolve_bwc_method(descriptor)
        provider = provider_for(method)

        values: Dict[str, Any] = {}
        if descriptor.user_inputs:
            values = self.pipeline.collect(descriptor, inputs)
            result = self.pipeline.validate(values, descriptor)
            if not result.valid:
                raise InputValidationError(result.errors)

        rendered = self._render(descriptor, method, values)
        env_pairs = parse_env_pairs(env)
        plan = InstallPlan(
            name=descriptor.name,
            provider=provider,
            scope=scope,
            descriptor=descriptor,
            method=method,
            values=values,
            env_overrides=list(env),
        )

        if provider == "manual":
            return plan

        if provider == "docker":
            plan.docker_name = descriptor.name
            spec = self._spec_or_none(rendered, descriptor.name)
            if spec is None:
                spec = docker_entry(descriptor.sources.docker or f"mcp/{descriptor.name}")
            plan.server = StdioServerConfig(
                provider="docker",
                scope=scope,
                registryName=descriptor.name,
                verificationStatus=descriptor.verification.status,
            )
            plan.manifest_template = _wrap(descriptor.name, spec)
            return plan

        spec = self._claude_spec(descriptor, method, rendered, hints)
        server = server_from_spec(spec, "claude", scope, descriptor)
        if env_pairs and isinstance(server, StdioServerConfig):
            server.env.update(env_pairs)
        plan.server = server
        plan.manifest_template = _wrap(descriptor.name, spec)
        return plan

    def _render(
        self,
        descriptor: ServerDescriptor,
        method: InstallationMethod,
        values: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        if not method.config_example:
            return None
        try:
            template = json.loads(method.config_example)
        except json.JSONDecodeError as e:
            logger.warning(f"config_example for {descriptor.name} is not valid JSON: {e}")
            return None
        if not isinstance(template, dict):
            return None
        if descriptor.user_inputs:
            return self.pipeline.apply_to_template(template, values, descriptor)
        return template

    @staticmethod
    def _spec_or_none(rendered: Optional[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
        if rendered is None:
            return None
        try:
            return extract_server_spec(rendered, name)
        except BwcError:
            if isinstance(rendered.get("mcpServers"), dict) and len(rendered["mcpServers"]) == 1:
                only = next(iter(rendered["mcpServers"].values()))
                return dict(only) if isinstance(only, dict) else None
            return None

    def _claude_spec(
        self,
        descriptor: ServerDescriptor,
        method: InstallationMethod,
        rendered: Optional[Dict[str, Any]],
        hints: Optional[InstallHints],
    ) -> Dict[str, Any]:
        if hints and hints.url:
            transport = validate_transport(hints.transport or "sse", hints.url)
            spec: Dict[str, Any] = {"type": transport, "url": hints.url}
            headers = parse_headers(hints.headers)
            if headers:
                spec["headers"] = headers
            return spec

        spec = self._spec_or_none(rendered, descriptor.name)
        if spec:
            return spec

        if method.command:
            parts = shlex.split(method.command)
            if parts[:3] == ["claude", "mcp", "add"]:
                raise NoInstallationMethod(
                    f"{descriptor.name}: '{method.command}' must be run by hand"
                )
            return {"command": parts[0], "args": parts[1:]}

        raise NoInstallationMethod(f"{descriptor.name}: {method.type} method has no server configuration")

    # ------------------------------------------------------------------
    # Installing
    # ------------------------------------------------------------------

    def install(self, plan: InstallPlan, record: bool = True) -> InstallOutcome:
        """
        Execute a plan and persist the result

        Order: provider action, shared manifest (project scope), config
        record, experimental warning.

        Raises:
            GatewayNotConfigured: the docker gateway is missing; nothing is recorded
        """
        outcome = self.executor.execute(plan)

        if outcome.status == GATEWAY_NOT_CONFIGURED:
            raise GatewayNotConfigured(outcome.message, outcome.remediation)

        if plan.server is None:
            return outcome

        if plan.scope == "project":
            template = plan.manifest_template or _wrap(plan.name, to_shared_entry(plan.server))
            self.manifest.merge_server(plan.name, template, plan.env_overrides)

        if record:
            self.store.add_installed_mcp_server(plan.name, plan.server)

        if plan.experimental:
            logger.warning(f"{plan.name}: {EXPERIMENTAL_WARNING}")
            outcome.warnings.append(EXPERIMENTAL_WARNING)

        return outcome

    def add_from_registry(
        self,
        name: str,
        scope: str = "local",
        hints: Optional[InstallHints] = None,
        inputs: Optional[Dict[str, Any]] = None,
        env: Sequence[str] = (),
    ) -> InstallOutcome:
        """Install a server described in the registry"""
        return self.install(self.plan(name, scope, hints, inputs, env))

    def add_remote(
        self,
        name: str,
        scope: str = "local",
        transport: str = "stdio",
        url: Optional[str] = None,
        headers: Sequence[str] = (),
        env: Sequence[str] = (),
        command: Sequence[str] = (),
    ) -> InstallOutcome:
        """Install a server that is not in the registry, from explicit flags"""
        valid, error = validate_item_name(name)
        if not valid:
            raise BwcError(f"Invalid server name '{name}': {error}")
        validate_scope(scope)
        validate_transport(transport, url)
        env_pairs = parse_env_pairs(env)

        server: ServerConfig
        if transport == "stdio":
            if not command:
                raise BwcError("A command is required for stdio transport (bwc add --mcp NAME -- COMMAND ARGS...)")
            server = StdioServerConfig(
                provider="claude",
                scope=scope,
                command=command[0],
                args=list(command[1:]),
                env=env_pairs,
            )
        else:
            server = NetworkServerConfig(
                provider="claude",
                scope=scope,
                transport=transport,
                url=url,
                headers=parse_headers(headers),
            )

        plan = InstallPlan(
            name=name,
            provider="claude",
            scope=scope,
            server=server,
            env_overrides=list(env) if transport == "stdio" else [],
        )
        return self.install(plan)

    def add_docker(self, name: str, scope: str = "local") -> InstallOutcome:
        """Enable a server from the Docker MCP catalog"""
        validate_scope(scope)
        catalog = self.docker.catalog()
        if catalog and name not in {entry.name for entry in catalog}:
            raise DescriptorNotFound("Docker MCP server", name)

        if self.docker.is_installed(name) and self.store.get_mcp_server_config(name) is not None:
            return InstallOutcome(name=name, provider="docker", status=SKIPPED, message=f"{name} is already enabled")

        plan = InstallPlan(
            name=name,
            provider="docker",
            scope=scope,
            docker_name=name,
            server=StdioServerConfig(provider="docker", scope=scope, registryName=name),
            manifest_template=_wrap(name, docker_entry(f"mcp/{name}")),
        )
        return self.install(plan)

    def setup_gateway(self, scope: str = "user") -> None:
        """Register the Docker MCP gateway with Claude Code"""
        validate_scope(scope)
        if not self.docker.is_docker_available():
            raise BwcError("Docker is not installed or not running. Install Docker Desktop and start it.")
        if not self.docker.is_toolkit_available():
            raise BwcError("Docker MCP Toolkit is not available. Enable it in Docker Desktop settings.")
        self.docker.setup_gateway(scope)

    # ------------------------------------------------------------------
    # Re-installing declared servers
    # ------------------------------------------------------------------

    def is_present(self, name: str, server: ServerConfig) -> bool:
        """Whether the provider already has this server"""
        if server.provider == "docker":
            return self.docker.is_installed(server.registryName or name)
        return self.claude.has_server(name)

    def reinstall(self, name: str, server: ServerConfig) -> InstallOutcome:
        """Re-apply a recorded server, skipping the provider if it is already present"""
        if self.is_present(name, server):
            if server.scope == "project" and not self.manifest.has_server(name):
                self.manifest.merge_server(name, _wrap(name, self._manifest_spec(name, server)))
            return InstallOutcome(name=name, provider=server.provider, status=SKIPPED, message=f"{name} already installed")

        plan = InstallPlan(
            name=name,
            provider=server.provider,
            scope=server.scope,
            server=server,
            docker_name=(server.registryName or name) if server.provider == "docker" else None,
            manifest_template=_wrap(name, self._manifest_spec(name, server)),
        )
        return self.install(plan, record=False)

    @staticmethod
    def _manifest_spec(name: str, server: ServerConfig) -> Dict[str, Any]:
        if server.provider == "docker" and isinstance(server, StdioServerConfig) and not server.command:
            return docker_entry(f"mcp/{server.registryName or name}")
        spec = to_shared_entry(server)
        if spec.get("env"):
            spec["env"] = {key: interpolate_env(key, value) for key, value in spec["env"].items()}
        return spec

    def install_declared(self) -> BulkResult:
        """Install every MCP server recorded in the config, one at a time"""
        result = BulkResult()
        for name, server in self.store.get_all_mcp_server_configs().items():
            try:
                result.outcomes.append(self.reinstall(name, server))
            except Exception as e:
                logger.error(f"Failed to install MCP server {name}: {e}")
                result.failures[name] = str(e)
        return result

    def install_many(self, names: Iterable[str], scope: str = "local", env: Sequence[str] = ()) -> BulkResult:
        """Install several registry servers; a failure does not stop the rest"""
        result = BulkResult()
        for name in names:
            try:
                result.outcomes.append(self.add_from_registry(name, scope=scope, env=env))
            except Exception as e:
                logger.error(f"Failed to install MCP server {name}: {e}")
                result.failures[name] = str(e)
        return result

    # ------------------------------------------------------------------
    # Removing
    # ------------------------------------------------------------------

    def remove(self, name: str, scope: Optional[str] = None) -> bool:
        """
        Remove a server from its provider, the shared manifest and the config

        Returns:
            True if the config held the server
        """
        server = self.store.get_mcp_server_config(name)
        effective_scope = scope or (server.scope if server else None)
        if effective_scope:
            validate_scope(effective_scope)

        if server is not None and server.provider == "docker":
            try:
                self.docker.disable_server(server.registryName or name)
            except SubprocessError as e:
                logger.warning(f"Could not disable {name} in Docker MCP Toolkit: {e}")
        elif self.claude.executable:
            try:
                if not self.claude.remove_server(name, effective_scope):
                    logger.info(f"{name} was not configured in Claude Code")
            except SubprocessError as e:
                logger.warning(f"Could not remove {name} from Claude Code: {e}")

        if effective_scope == "project":
            self.manifest.remove_server(name)

        return self.store.remove_installed_mcp_server(name)
