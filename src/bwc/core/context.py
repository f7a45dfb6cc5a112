"""
Per-invocation context

Built once per CLI command and passed down. Holds the active config
store and the collaborators that act on it, so nothing depends on
module-level state.
"""

import logging
from pathlib import Path
from typing import Optional

from bwc.mcp.claude_cli import ClaudeCLI
from bwc.mcp.docker import DockerGateway
from bwc.mcp.executor import InstallExecutor
from bwc.mcp.inputs import Prompter, UserInputPipeline
from bwc.mcp.installer import McpInstaller
from bwc.mcp.runner import ProcessRunner, SubprocessRunner
from bwc.mcp.shared_manifest import SharedManifest
from bwc.mcp.verification import VerificationEngine

from .config import ConfigStore
from .errors import ConfigNotFound
from .items import ExistsHandler, ItemInstaller
from .paths import DEFAULT_REGISTRY_URL
from .registry import RegistryClient
from .scope import ScopeLocator

logger = logging.getLogger(__name__)


class BwcContext:
    """
    Resolves the active config lazily and wires collaborators to it

    Args:
        cwd: Working directory (project search starts here)
        home: Home directory (user config and ~ expansion)
        force_user: Use the user config even inside a project
        force_project: Require a project config
        runner: Process runner for claude/docker
        registry: Registry client (built from the config's registry URL when omitted)
        prompter: Asks for user inputs; None uses declared defaults
        claude_executable: Explicit path to claude
        docker_executable: Explicit docker executable
    """

    def __init__(
        self,
        cwd: Optional[Path] = None,
        home: Optional[Path] = None,
        force_user: bool = False,
        force_project: bool = False,
        runner: Optional[ProcessRunner] = None,
        registry: Optional[RegistryClient] = None,
        prompter: Optional[Prompter] = None,
        claude_executable: Optional[str] = None,
        docker_executable: Optional[str] = None,
    ):
        self.locator = ScopeLocator(cwd, home)
        self.force_user = force_user
        self.force_project = force_project
        self.runner = runner or SubprocessRunner()
        self.prompter = prompter
        self._registry = registry
        self._store: Optional[ConfigStore] = None
        self.claude = ClaudeCLI(self.runner, claude_executable, home=self.locator.home)
        self.docker = DockerGateway(self.runner, self.claude, docker_executable)

    @property
    def cwd(self) -> Path:
        return self.locator.cwd

    @property
    def home(self) -> Path:
        return self.locator.home

    @property
    def store(self) -> ConfigStore:
        """Active config (loaded on first use)"""
        if self._store is None:
            path, scope = self.locator.resolve(self.force_user, self.force_project)
            self._store = ConfigStore.load(path, scope, home=self.home)
            logger.debug(f"BwcContext using {self._store!r}")
        return self._store

    def reload(self) -> ConfigStore:
        """Drop the cached config and read it again"""
        self._store = None
        return self.store

    @property
    def registry(self) -> RegistryClient:
        if self._registry is None:
            try:
                url = self.store.registry_url
            except ConfigNotFound:
                url = DEFAULT_REGISTRY_URL
            self._registry = RegistryClient(url)
        return self._registry

    @property
    def shared_manifest(self) -> SharedManifest:
        """.mcp.json beside the project config, or in cwd for user configs"""
        store = self.store
        return SharedManifest(store.project_root if store.is_project else self.cwd)

    @property
    def executor(self) -> InstallExecutor:
        return InstallExecutor(self.claude, self.docker)

    def mcp_installer(self) -> McpInstaller:
        return McpInstaller(
            self.store,
            self.executor,
            self.shared_manifest,
            registry=self.registry,
            pipeline=UserInputPipeline(self.prompter, home=self.home),
        )

    def item_installer(self, on_exists: Optional[ExistsHandler] = None) -> ItemInstaller:
        return ItemInstaller(self.store, self.registry, on_exists)

    @property
    def verifier(self) -> VerificationEngine:
        return VerificationEngine(self.claude, self.docker)

    def __repr__(self) -> str:
        return f"BwcContext(cwd={str(self.cwd)!r}, force_user={self.force_user}, force_project={self.force_project})"
