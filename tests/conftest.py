"""
Pytest configuration and fixtures
"""

import copy
import json
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from bwc.core.context import BwcContext
from bwc.core.schema import Registry
from bwc.mcp.runner import ProcessResult, ProcessRunner


GATEWAY_LIST_OUTPUT = "docker-toolkit: docker mcp gateway run - ✓ Connected\n"


class FakeRunner(ProcessRunner):
    """Records every argv and answers with scripted results (longest prefix wins)"""

    def __init__(self):
        self.calls: List[List[str]] = []
        self._responses: Dict[Tuple[str, ...], ProcessResult] = {}

    def on(self, *prefix: str, stdout: str = "", stderr: str = "", returncode: int = 0) -> "FakeRunner":
        self._responses[tuple(prefix)] = ProcessResult(stdout=stdout, stderr=stderr, returncode=returncode)
        return self

    def run(self, argv: Sequence[str], timeout: Optional[float] = None) -> ProcessResult:
        argv = list(argv)
        self.calls.append(argv)
        best = None
        for prefix, result in self._responses.items():
            if tuple(argv[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best[0])):
                best = (prefix, result)
        return best[1] if best else ProcessResult()

    def calls_starting(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


class StaticRegistry:
    """Registry client stand-in backed by an in-memory document"""

    def __init__(self, data: dict, files: Optional[Dict[str, str]] = None):
        self.registry = Registry.model_validate(data)
        self.files = files or {}

    def get_subagents(self):
        return self.registry.subagents

    def get_commands(self):
        return self.registry.commands

    def get_mcp_servers(self):
        return self.registry.mcpServers

    def find_subagent(self, name):
        return next((s for s in self.registry.subagents if s.name == name), None)

    def find_command(self, name):
        return next((c for c in self.registry.commands if c.name == name), None)

    def find_mcp_server(self, name):
        return next((m for m in self.registry.mcpServers if m.name == name), None)

    def search_subagents(self, query):
        return [s for s in self.registry.subagents if query in s.name]

    def search_commands(self, query):
        return [c for c in self.registry.commands if query in c.name]

    def search_mcp_servers(self, query):
        return [m for m in self.registry.mcpServers if query in m.name]

    def fetch_file_content(self, path):
        return self.files.get(path, f"# {path}\n")


REGISTRY_DATA = {
    "version": "1.0",
    "subagents": [
        {
            "name": "python-pro",
            "category": "language-specialists",
            "description": "Python expert",
            "tags": ["python"],
            "tools": ["Read", "Write"],
            "file": "subagents/python-pro.md",
        }
    ],
    "commands": [
        {
            "name": "commit",
            "category": "version-control",
            "description": "Write a commit message",
            "file": "commands/commit.md",
        }
    ],
    "mcpServers": [
        {
            "name": "redis",
            "display_name": "Redis",
            "category": "databases",
            "description": "Redis key-value store",
            "verification": {"status": "verified"},
            "sources": {"docker": "mcp/redis"},
            "installation_methods": [{"type": "docker", "recommended": True}],
        },
        {
            "name": "postgres",
            "display_name": "PostgreSQL",
            "category": "databases",
            "description": "Query Postgres",
            "verification": {"status": "community"},
            "installation_methods": [
                {
                    "type": "claude-cli",
                    "recommended": True,
                    "config_example": json.dumps(
                        {
                            "mcpServers": {
                                "postgres": {
                                    "command": "npx",
                                    "args": ["-y", "@modelcontextprotocol/server-postgres", "{{connection}}"],
                                }
                            }
                        }
                    ),
                }
            ],
            "user_inputs": [
                {
                    "name": "connection",
                    "display_name": "Connection string",
                    "type": "string",
                    "default": "postgresql://localhost/db",
                    "env_var": "DATABASE_URL",
                }
            ],
        },
        {
            "name": "broken",
            "display_name": "Broken",
            "category": "testing",
            "description": "Fails to install",
            "verification": {"status": "experimental"},
            "installation_methods": [
                {
                    "type": "npm",
                    "config_example": json.dumps({"mcpServers": {"broken": {"command": "npx", "args": ["broken"]}}}),
                }
            ],
        },
        {
            "name": "shady",
            "display_name": "Shady",
            "category": "testing",
            "description": "Experimental server",
            "verification": {"status": "experimental"},
            "installation_methods": [
                {
                    "type": "npm",
                    "config_example": json.dumps({"mcpServers": {"shady": {"command": "npx", "args": ["shady"]}}}),
                }
            ],
        },
        {
            "name": "handmade",
            "display_name": "Handmade",
            "category": "testing",
            "description": "Manual only",
            "installation_methods": [
                {"type": "manual", "steps": ["Clone the repo", "Build it"], "requirements": ["make"]}
            ],
        },
    ],
}


@pytest.fixture
def home(tmp_path):
    """Temporary home directory"""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def project(tmp_path):
    """Temporary project directory"""
    path = tmp_path / "project"
    path.mkdir()
    return path.resolve()


def write_config(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def user_config(home):
    """Write ~/.bwc/config.json"""
    def _write(data=None):
        return write_config(home / ".bwc" / "config.json", data or {"version": "1.0"})
    return _write


@pytest.fixture
def project_config(project):
    """Write <project>/bwc.config.json"""
    def _write(data=None):
        return write_config(project / "bwc.config.json", data or {"version": "1.0"})
    return _write


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def registry():
    return StaticRegistry(REGISTRY_DATA)


@pytest.fixture
def make_context(home, project, runner, registry):
    """Build a BwcContext rooted in the temporary directories"""
    def _make(**kwargs):
        kwargs.setdefault("cwd", project)
        kwargs.setdefault("home", home)
        kwargs.setdefault("runner", runner)
        kwargs.setdefault("registry", registry)
        kwargs.setdefault("claude_executable", "claude")
        kwargs.setdefault("docker_executable", "docker")
        return BwcContext(**kwargs)
    return _make


@pytest.fixture
def gateway_runner(runner):
    """Runner whose claude mcp list shows the Docker MCP gateway"""
    return runner.on("claude", "mcp", "list", stdout=GATEWAY_LIST_OUTPUT)


@pytest.fixture
def registry_data():
    """Registry document as served over HTTP"""
    return copy.deepcopy(REGISTRY_DATA)
