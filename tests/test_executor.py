"""
Tests for the claude/docker wrappers and the provider executor
"""

import pytest

from bwc.core.errors import BwcError, SubprocessError
from bwc.core.schema import InstallationMethod, NetworkServerConfig, StdioServerConfig
from bwc.mcp.claude_cli import ClaudeCLI, build_add_args, parse_list_output
from bwc.mcp.docker import DockerGateway, parse_catalog_output, parse_server_list
from bwc.mcp.executor import GATEWAY_NOT_CONFIGURED, INSTALLED, MANUAL, InstallExecutor, InstallPlan


def make_executor(runner):
    claude = ClaudeCLI(runner, "claude")
    return InstallExecutor(claude, DockerGateway(runner, claude, "docker"))


def test_build_add_args_network():
    """Test claude mcp add arguments for an SSE server with a header"""
    server = NetworkServerConfig(
        provider="claude",
        scope="user",
        transport="sse",
        url="https://mcp.linear.app/sse",
        headers={"Authorization": "Bearer t"},
    )

    assert build_add_args("linear", server) == [
        "mcp", "add", "--scope", "user", "--transport", "sse",
        "--header", "Authorization: Bearer t",
        "linear", "https://mcp.linear.app/sse",
    ]


def test_build_add_args_stdio():
    """Test that stdio servers put the command after --"""
    server = StdioServerConfig(provider="claude", command="npx", args=["-y", "pkg"], env={"TOKEN": "a=b"})

    assert build_add_args("tool", server, "project") == [
        "mcp", "add", "--scope", "project", "--env", "TOKEN=a=b", "tool", "--", "npx", "-y", "pkg",
    ]

    with pytest.raises(BwcError):
        build_add_args("tool", StdioServerConfig(provider="claude"))


def test_parse_list_output():
    """Test parsing claude mcp list"""
    output = (
        "Checking MCP server health...\n\n"
        "linear: https://mcp.linear.app/sse (SSE) - ✓ Connected\n"
        "pg: npx -y pkg - ✗ Failed to connect\n"
    )

    servers = parse_list_output(output)

    assert [s.name for s in servers] == ["linear", "pg"]
    assert servers[0].connected is True
    assert servers[1].connected is False


def test_parse_docker_output():
    """Test parsing docker mcp catalog show and server list"""
    catalog = (
        "MCP Server Directory\n"
        "3 servers available\n"
        "redis: Redis key-value store\n"
        "  github\n"
        "      GitHub API access\n"
        "      and more\n"
    )

    entries = parse_catalog_output(catalog)

    assert [(e.name, e.description) for e in entries] == [
        ("redis", "Redis key-value store"),
        ("github", "GitHub API access and more"),
    ]
    assert parse_server_list("redis, github,\n") == ["redis", "github"]


def test_claude_remove_not_found(runner):
    """Test that removing an unknown server is not an error"""
    runner.on("claude", "mcp", "remove", returncode=1, stderr="No MCP server found with name: x")
    claude = ClaudeCLI(runner, "claude")

    assert claude.remove_server("x") is False

    runner.on("claude", "mcp", "remove", returncode=1, stderr="permission denied")
    with pytest.raises(SubprocessError):
        claude.remove_server("x")


def test_execute_claude_sse(runner):
    """Test that a network plan becomes a single claude mcp add call"""
    server = NetworkServerConfig(provider="claude", scope="user", transport="sse", url="https://x/sse")

    outcome = make_executor(runner).execute(InstallPlan(name="api", provider="claude", scope="user", server=server))

    assert outcome.status == INSTALLED
    assert runner.calls_starting("claude", "mcp", "add") == [
        ["claude", "mcp", "add", "--scope", "user", "--transport", "sse", "api", "https://x/sse"]
    ]


def test_execute_claude_failure_raises(runner):
    """Test that a failing claude mcp add surfaces as SubprocessError"""
    runner.on("claude", "mcp", "add", returncode=1, stderr="already exists")
    server = StdioServerConfig(provider="claude", command="npx")

    with pytest.raises(SubprocessError, match="already exists"):
        make_executor(runner).execute(InstallPlan(name="x", provider="claude", scope="local", server=server))


def test_execute_claude_unavailable(runner):
    """Test that a missing claude CLI yields manual instructions"""
    runner.on("claude", "--version", returncode=127)
    server = StdioServerConfig(provider="claude", command="npx", args=["pkg"])

    outcome = make_executor(runner).execute(InstallPlan(name="x", provider="claude", scope="local", server=server))

    assert outcome.status == MANUAL
    assert outcome.config == {"mcpServers": {"x": {"command": "npx", "args": ["pkg"]}}}
    assert runner.calls_starting("claude", "mcp", "add") == []


def test_execute_docker_requires_gateway(runner):
    """Test that docker installs stop when the gateway is missing"""

    outcome = make_executor(runner).execute(InstallPlan(name="redis", provider="docker", scope="local"))

    assert outcome.status == GATEWAY_NOT_CONFIGURED
    assert outcome.remediation[-1] == "3. Enable the server: docker mcp server enable redis"
    assert runner.calls_starting("docker", "mcp", "server", "enable") == []


def test_execute_docker_enables_server(gateway_runner):
    outcome = make_executor(gateway_runner).execute(
        InstallPlan(name="cache", provider="docker", scope="local", docker_name="redis")
    )

    assert outcome.status == INSTALLED
    assert gateway_runner.calls_starting("docker", "mcp", "server", "enable") == [["docker", "mcp", "server", "enable", "redis"]]


def test_execute_manual(runner):
    """Test that manual methods return steps and requirements"""
    method = InstallationMethod(
        type="manual",
        steps=["Clone", "Build"],
        requirements=["make"],
        config_example='{"mcpServers": {"m": {"command": "./m"}}}',
    )

    outcome = make_executor(runner).execute(InstallPlan(name="m", provider="manual", scope="local", method=method))

    assert outcome.status == MANUAL
    assert outcome.steps == ["Clone", "Build"]
    assert outcome.requirements == ["make"]
    assert outcome.config == {"mcpServers": {"m": {"command": "./m"}}}


def test_claude_get_server(runner):
    runner.on("claude", "mcp", "get", "pg", stdout="pg:\n  Scope: Local\n")
    runner.on("claude", "mcp", "get", "nope", returncode=1, stderr="No MCP server found")
    claude = ClaudeCLI(runner, "claude")

    assert "Scope: Local" in claude.get_server("pg")
    assert claude.get_server("nope") is None


def test_setup_gateway_uses_docker_executable(runner):
    """Test that the gateway command runs the same docker binary bwc uses"""
    gateway = DockerGateway(runner, ClaudeCLI(runner, "claude"), "docker.exe")

    gateway.setup_gateway("user")

    assert runner.calls_starting("claude", "mcp", "add") == [
        ["claude", "mcp", "add", "docker-toolkit", "--scope", "user", "--", "docker.exe", "mcp", "gateway", "run"]
    ]
    runner.on("claude", "mcp", "list", stdout="docker-toolkit: docker.exe mcp gateway run - ✓ Connected\n")
    assert gateway.is_gateway_configured() is True
