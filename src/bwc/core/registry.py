"""
Registry client for the Build with Claude catalog

Fetches registry.json once per client instance and answers lookups
and searches for subagents, commands and MCP servers.
"""

import logging
from typing import List, Optional

import requests
from pydantic import ValidationError

from .errors import RegistryError
from .paths import DEFAULT_REGISTRY_URL
from .schema import Command, Registry, ServerDescriptor, Subagent

logger = logging.getLogger(__name__)

CONTENT_BASE_URL = "https://raw.githubusercontent.com/davepoon/claude-code-subagents-collection/main/"
REQUEST_TIMEOUT = 30


def _matches(query: str, *fields) -> bool:
    term = query.lower()
    for value in fields:
        if isinstance(value, (list, tuple)):
            if any(term in str(v).lower() for v in value):
                return True
        elif value and term in str(value).lower():
            return True
    return False


class RegistryClient:
    """
    Client for the registry document

    Features:
    - One GET per client instance, validated into pydantic models
    - Lookup and search for every item kind
    - Download of subagent/command markdown files

    Args:
        registry_url: URL of registry.json
        session: requests session (tests pass a stub)
        content_base_url: Base URL for item files
    """

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        session: Optional[requests.Session] = None,
        content_base_url: str = CONTENT_BASE_URL,
    ):
        self.registry_url = registry_url
        self.session = session or requests.Session()
        self.content_base_url = content_base_url
        self._registry: Optional[Registry] = None

    def fetch_registry(self) -> Registry:
        """Fetch and parse the registry (cached after the first call)"""
        if self._registry is not None:
            return self._registry

        logger.debug(f"Fetching registry from {self.registry_url}")
        try:
            response = self.session.get(self.registry_url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            self._registry = Registry.model_validate(response.json())
        except requests.RequestException as e:
            raise RegistryError(f"Failed to fetch registry: {e}") from e
        except ValidationError as e:
            raise RegistryError(f"Registry has unexpected format: {e.error_count()} error(s)") from e
        except ValueError as e:
            raise RegistryError(f"Failed to parse registry: {e}") from e

        logger.debug(
            f"Registry loaded: {len(self._registry.subagents)} subagents, "
            f"{len(self._registry.commands)} commands, {len(self._registry.mcpServers)} MCP servers"
        )
        return self._registry

    # Subagents
    def get_subagents(self) -> List[Subagent]:
        return self.fetch_registry().subagents

    def find_subagent(self, name: str) -> Optional[Subagent]:
        return next((s for s in self.get_subagents() if s.name == name), None)

    def search_subagents(self, query: str) -> List[Subagent]:
        return [s for s in self.get_subagents() if _matches(query, s.name, s.description, s.tags)]

    # Commands
    def get_commands(self) -> List[Command]:
        return self.fetch_registry().commands

    def find_command(self, name: str) -> Optional[Command]:
        return next((c for c in self.get_commands() if c.name == name), None)

    def search_commands(self, query: str) -> List[Command]:
        return [c for c in self.get_commands() if _matches(query, c.name, c.description, c.tags)]

    # MCP servers
    def get_mcp_servers(self) -> List[ServerDescriptor]:
        return self.fetch_registry().mcpServers

    def find_mcp_server(self, name: str) -> Optional[ServerDescriptor]:
        return next((s for s in self.get_mcp_servers() if s.name == name), None)

    def search_mcp_servers(self, query: str) -> List[ServerDescriptor]:
        return [
            s
            for s in self.get_mcp_servers()
            if _matches(query, s.name, s.display_name, s.description, s.tags, s.category)
        ]

    def fetch_file_content(self, file_path: str) -> str:
        """Download a subagent or command markdown file"""
        url = self.content_base_url + file_path.lstrip("/")
        try:
            response = self.session.get(url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RegistryError(f"Failed to fetch file content: {e}") from e
        return response.text
