"""
Tests for MCP server install orchestration
"""

import json

import pytest

from bwc.core.errors import (
    BwcError,
    DescriptorNotFound,
    FileSystemError,
    GatewayNotConfigured,
    InputValidationError,
)
from bwc.core.schema import NetworkServerConfig, StdioServerConfig
from bwc.mcp.executor import MANUAL, SKIPPED
from bwc.mcp.installer import EXPERIMENTAL_WARNING
from bwc.mcp.selector import InstallHints


@pytest.fixture
def project_installer(project_config, make_context):
    project_config()
    return make_context().mcp_installer()


def test_docker_install_in_project_scope(project, project_installer, gateway_runner):
    """Test a docker server installed with project scope"""
    outcome = project_installer.add_from_registry("redis", scope="project")

    assert outcome.status == "installed"
    assert gateway_runner.calls_starting("docker", "mcp", "server", "enable") == [
        ["docker", "mcp", "server", "enable", "redis"]
    ]

    manifest = json.loads((project / ".mcp.json").read_text())
    assert manifest["mcpServers"]["redis"] == {"command": "docker", "args": ["run", "-i", "--rm", "mcp/redis"]}

    record = json.loads((project / "bwc.config.json").read_text())["installed"]["mcpServers"]["redis"]
    assert record["provider"] == "docker"
    assert record["transport"] == "stdio"
    assert record["scope"] == "project"
    assert record["registryName"] == "redis"
    assert record["verificationStatus"] == "verified"


def test_missing_gateway_records_nothing(project, project_installer, runner):
    """Test that a docker install without the gateway leaves no trace"""
    with pytest.raises(GatewayNotConfigured) as exc_info:
        project_installer.add_from_registry("redis", scope="project")

    assert "bwc add --setup" in exc_info.value.remediation[0]
    assert not (project / ".mcp.json").exists()
    assert project_installer.store.installed_mcp_servers() == []


def test_registry_server_with_inputs(project_installer, runner):
    """Test that declared inputs are rendered into the claude command"""
    project_installer.add_from_registry("postgres", inputs={"connection": "postgresql://db/app"})

    assert runner.calls_starting("claude", "mcp", "add") == [[
        "claude", "mcp", "add", "--scope", "local",
        "--env", "DATABASE_URL=postgresql://db/app",
        "postgres", "--", "npx", "-y", "@modelcontextprotocol/server-postgres", "postgresql://db/app",
    ]]

    record = project_installer.store.get_mcp_server_config("postgres")
    assert isinstance(record, StdioServerConfig)
    assert record.provider == "claude"
    assert record.env == {"DATABASE_URL": "postgresql://db/app"}


def test_invalid_inputs_stop_before_provider(project_installer, registry, runner):
    """Test that validation errors are raised before anything runs"""
    registry.find_mcp_server("postgres").user_inputs[0].validation = None
    registry.find_mcp_server("postgres").user_inputs[0].default = None

    with pytest.raises(InputValidationError) as exc_info:
        project_installer.add_from_registry("postgres")

    assert exc_info.value.errors == ["Connection string is required"]
    assert runner.calls == []


def test_unknown_server(project_installer):
    with pytest.raises(DescriptorNotFound):
        project_installer.add_from_registry("nope")


def test_bulk_install_isolates_failures(project_installer, runner):
    """Test that one failing server does not stop the others"""
    runner.on("claude", "mcp", "add", "--scope", "local", "broken", returncode=1, stderr="boom")

    result = project_installer.install_many(["postgres", "broken", "shady"])

    assert result.succeeded == ["postgres", "shady"]
    assert result.success_count == 2
    assert result.failure_count == 1
    assert "boom" in result.failures["broken"]
    assert project_installer.store.installed_mcp_servers() == ["postgres", "shady"]


def test_experimental_warning(project_installer):
    """Test that experimental servers install with a warning"""
    outcome = project_installer.add_from_registry("shady")

    assert outcome.warnings == [EXPERIMENTAL_WARNING]
    assert project_installer.store.get_mcp_server_config("shady").verificationStatus == "experimental"


def test_manual_method_is_not_recorded(project_installer, runner):
    """Test that manual installs only return instructions"""
    outcome = project_installer.add_from_registry("handmade")

    assert outcome.status == MANUAL
    assert outcome.steps == ["Clone the repo", "Build it"]
    assert project_installer.store.installed_mcp_servers() == []
    assert runner.calls == []


def test_remote_server_with_url_hint(project_installer, runner):
    """Test that a url hint turns a registry server into a network install"""
    hints = InstallHints(transport="http", url="https://pg.example.com/mcp", headers=["X-Key: k"])

    project_installer.add_from_registry("postgres", scope="user", hints=hints)

    assert runner.calls_starting("claude", "mcp", "add")[0][1:] == [
        "mcp", "add", "--scope", "user", "--transport", "http",
        "--header", "X-Key: k", "postgres", "https://pg.example.com/mcp",
    ]
    assert isinstance(project_installer.store.get_mcp_server_config("postgres"), NetworkServerConfig)


def test_add_remote_project_scope(project, project_installer, runner):
    """Test an unlisted SSE server shared through .mcp.json"""
    project_installer.add_remote(
        "linear",
        scope="project",
        transport="sse",
        url="https://mcp.linear.app/sse",
        headers=["Authorization: Bearer t"],
    )

    assert runner.calls_starting("claude", "mcp", "add") == [[
        "claude", "mcp", "add", "--scope", "project", "--transport", "sse",
        "--header", "Authorization: Bearer t", "linear", "https://mcp.linear.app/sse",
    ]]
    manifest = json.loads((project / ".mcp.json").read_text())
    assert manifest["mcpServers"]["linear"] == {
        "type": "sse",
        "url": "https://mcp.linear.app/sse",
        "headers": {"Authorization": "Bearer t"},
    }


def test_add_remote_stdio_with_env(project_installer, runner):
    """Test an unlisted stdio server with environment variables"""
    project_installer.add_remote("tool", env=["TOKEN=a=b"], command=["node", "server.js"])

    assert runner.calls_starting("claude", "mcp", "add") == [[
        "claude", "mcp", "add", "--scope", "local", "--env", "TOKEN=a=b", "tool", "--", "node", "server.js",
    ]]


def test_manifest_failure_prevents_record(project, project_installer):
    """Test that the config is only written after the manifest"""
    (project / ".mcp.json").mkdir()

    with pytest.raises(FileSystemError):
        project_installer.add_remote("tool", scope="project", command=["node"])

    assert project_installer.store.installed_mcp_servers() == []


def test_claude_unavailable_still_records(project_installer, runner):
    """Test that a manual fallback for a missing claude CLI keeps the record"""
    runner.on("claude", "--version", returncode=127)

    outcome = project_installer.add_remote("tool", command=["node"])

    assert outcome.status == MANUAL
    assert project_installer.store.installed_mcp_servers() == ["tool"]


def test_reinstall_skips_present_servers(project_installer, gateway_runner):
    """Test that install_declared leaves servers the provider already has"""
    store = project_installer.store
    store.add_installed_mcp_server("redis", StdioServerConfig(provider="docker", registryName="redis"))
    gateway_runner.on("docker", "mcp", "server", "list", stdout="redis, github")

    result = project_installer.install_declared()

    assert [o.status for o in result.outcomes] == [SKIPPED]
    assert gateway_runner.calls_starting("docker", "mcp", "server", "enable") == []


def test_reinstall_applies_missing_servers(project, project_installer, runner):
    """Test that install_declared re-applies servers the provider lacks"""
    store = project_installer.store
    store.add_installed_mcp_server(
        "tool", StdioServerConfig(provider="claude", scope="project", command="node", args=["s.js"])
    )

    result = project_installer.install_declared()

    assert result.failure_count == 0
    assert runner.calls_starting("claude", "mcp", "add") == [
        ["claude", "mcp", "add", "--scope", "project", "tool", "--", "node", "s.js"]
    ]
    assert json.loads((project / ".mcp.json").read_text())["mcpServers"]["tool"] == {
        "command": "node",
        "args": ["s.js"],
    }


def test_remove_project_server(project, project_installer, runner):
    """Test removal from claude, .mcp.json and the config"""
    project_installer.add_remote("tool", scope="project", command=["node"])

    assert project_installer.remove("tool") is True

    assert runner.calls_starting("claude", "mcp", "remove") == [
        ["claude", "mcp", "remove", "--scope", "project", "tool"]
    ]
    assert json.loads((project / ".mcp.json").read_text())["mcpServers"] == {}
    assert project_installer.store.installed_mcp_servers() == []
    assert project_installer.remove("tool") is False


def test_remove_docker_server(project_installer, runner):
    """Test that docker servers are disabled in the toolkit"""
    project_installer.store.add_installed_mcp_server(
        "cache", StdioServerConfig(provider="docker", registryName="redis")
    )

    assert project_installer.remove("cache") is True
    assert runner.calls_starting("docker", "mcp", "server", "disable") == [
        ["docker", "mcp", "server", "disable", "redis"]
    ]


def test_setup_gateway(project_installer, runner):
    """Test registering the Docker MCP gateway"""
    runner.on("docker", "--version", stdout="Docker version 27.0.1")

    project_installer.setup_gateway("user")

    assert runner.calls_starting("claude", "mcp", "add") == [
        ["claude", "mcp", "add", "docker-toolkit", "--scope", "user", "--", "docker", "mcp", "gateway", "run"]
    ]


def test_add_remote_rejects_bad_names(project_installer, runner):
    with pytest.raises(BwcError, match="Invalid server name"):
        project_installer.add_remote("bad name", command=["node"])

    assert runner.calls == []


def test_add_remote_project_env_is_interpolated(project, project_installer, runner):
    """Test that --env values reach .mcp.json as ${KEY:-VALUE}"""
    project_installer.add_remote("tool", scope="project", env=["API_KEY=secret"], command=["node", "s.js"])

    entry = json.loads((project / ".mcp.json").read_text())["mcpServers"]["tool"]
    assert entry["env"] == {"API_KEY": "${API_KEY:-secret}"}
    assert project_installer.store.get_mcp_server_config("tool").env == {"API_KEY": "secret"}
    assert runner.calls_starting("claude", "mcp", "add")[0][4:7] == ["project", "--env", "API_KEY=secret"]


def test_reinstall_keeps_env_interpolated(project, project_installer):
    """Test that install_declared rewrites .mcp.json env without plain values"""
    project_installer.add_from_registry("shady", scope="project", env=["API_KEY=secret"])
    manifest = project / ".mcp.json"
    assert json.loads(manifest.read_text())["mcpServers"]["shady"]["env"] == {"API_KEY": "${API_KEY:-secret}"}

    manifest.unlink()
    result = project_installer.install_declared()

    assert result.failure_count == 0
    assert json.loads(manifest.read_text())["mcpServers"]["shady"] == {
        "command": "npx",
        "args": ["shady"],
        "env": {"API_KEY": "${API_KEY:-secret}"},
    }
