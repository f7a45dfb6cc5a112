"""
Tests for ConfigStore and config discovery
"""

import json

import pytest

from bwc.core import (
    ConfigNotFound,
    ConfigStore,
    FileSystemError,
    InvalidScope,
    NetworkServerConfig,
    ScopeLocator,
    StdioServerConfig,
    init_config,
    resolve_active_config,
)


def test_init_user_config(home, project):
    """Test that init writes the user config and creates install directories"""
    store = init_config(project=False, cwd=project, home=home)

    assert store.path == home / ".bwc" / "config.json"
    assert store.scope == "user"
    assert (home / ".claude" / "agents").is_dir()
    assert (home / ".claude" / "commands").is_dir()

    data = json.loads(store.path.read_text())
    assert data["version"] == "1.0"
    assert data["paths"]["subagents"] == "~/.claude/agents/"
    assert data["installed"] == {"subagents": [], "commands": [], "mcpServers": {}}


def test_init_project_config(home, project):
    """Test that a project config uses project-relative paths"""
    store = init_config(project=True, cwd=project, home=home)

    assert store.path == project / "bwc.config.json"
    assert store.subagents_path() == project / ".claude" / "agents"
    assert store.commands_path() == project / ".claude" / "commands"
    assert (project / ".claude" / "agents").is_dir()


def test_init_refuses_to_overwrite(home, project, project_config):
    """Test that init without force keeps an existing config"""
    project_config({"version": "1.0", "custom": True})

    with pytest.raises(FileSystemError, match="already exists"):
        init_config(project=True, cwd=project, home=home)

    store = init_config(project=True, cwd=project, home=home, force=True)
    assert "custom" not in json.loads(store.path.read_text())


def test_project_config_wins(home, project, user_config, project_config):
    """Test that a project config takes precedence over the user config"""
    user_config()
    project_config()

    path, scope = ScopeLocator(project, home).resolve()
    assert scope == "project"
    assert path == project / "bwc.config.json"

    path, scope = ScopeLocator(project, home).resolve(force_user=True)
    assert scope == "user"


def test_project_config_found_from_subdirectory(home, project, project_config):
    """Test that the search walks up from cwd"""
    project_config()
    nested = project / "src" / "pkg"
    nested.mkdir(parents=True)

    path, scope = ScopeLocator(nested, home).resolve()
    assert path == project / "bwc.config.json"
    assert scope == "project"


def test_dot_bwc_project_config(home, project):
    """Test the .bwc/config.json project layout"""
    config = project / ".bwc" / "config.json"
    config.parent.mkdir()
    config.write_text('{"version": "1.0"}')

    store = resolve_active_config(cwd=project, home=home)
    assert store.scope == "project"
    assert store.project_root == project


def test_user_config_is_not_a_project_config(home, user_config):
    """Test that ~/.bwc/config.json is not picked up as a project config"""
    user_config()
    cwd = home / "code"
    cwd.mkdir()

    locator = ScopeLocator(cwd, home)
    assert locator.find_project_config() is None
    assert locator.resolve() == (home / ".bwc" / "config.json", "user")


def test_no_config(home, project):
    """Test errors when nothing has been initialized"""
    locator = ScopeLocator(project, home)

    with pytest.raises(ConfigNotFound):
        locator.resolve()
    with pytest.raises(ConfigNotFound):
        locator.resolve(force_project=True)
    with pytest.raises(InvalidScope):
        locator.resolve(force_user=True, force_project=True)


def test_load_rejects_invalid_json(home, project):
    """Test that a corrupt config raises FileSystemError"""
    path = project / "bwc.config.json"
    path.write_text("{not json")

    with pytest.raises(FileSystemError, match="invalid JSON"):
        ConfigStore.load(path, "project", home=home)


def test_load_migrates_without_writing(home, project_config):
    """Test that loading a legacy config does not modify the file"""
    path = project_config({"version": "1.0", "installed": {"mcpServers": ["redis"]}})
    before = path.read_text()

    store = ConfigStore.load(path, "project", home=home)

    assert store.installed_mcp_servers() == ["redis"]
    assert store.get_mcp_server_config("redis").provider == "docker"
    assert path.read_text() == before


def test_unknown_fields_survive_save(home, project_config):
    """Test that fields bwc does not know about are written back"""
    path = project_config({"version": "1.0", "team": "platform"})
    store = ConfigStore.load(path, "project", home=home)

    store.add_installed_subagent("python-pro")

    data = json.loads(path.read_text())
    assert data["team"] == "platform"
    assert data["installed"]["subagents"] == ["python-pro"]


def test_subagents_and_commands(home, project_config):
    """Test adding and removing subagents and commands"""
    path = project_config()
    store = ConfigStore.load(path, "project", home=home)

    store.add_installed_subagent("python-pro")
    store.add_installed_subagent("python-pro")
    store.add_installed_command("commit")

    assert store.installed_subagents() == ["python-pro"]
    assert store.installed_commands() == ["commit"]

    assert store.remove_installed_command("commit") is True
    assert store.remove_installed_command("commit") is False

    reloaded = ConfigStore.load(path, "project", home=home)
    assert reloaded.installed_subagents() == ["python-pro"]
    assert reloaded.installed_commands() == []


def test_mcp_server_records(home, project_config):
    """Test recording stdio and network servers"""
    path = project_config()
    store = ConfigStore.load(path, "project", home=home)

    postgres = StdioServerConfig(
        provider="claude", scope="project", command="npx", args=["-y", "pg"], env={"PGHOST": "db"}
    )
    linear = NetworkServerConfig(
        provider="claude",
        transport="sse",
        url="https://mcp.linear.app/sse",
        headers={"Authorization": "Bearer t"},
        verificationStatus="verified",
    )
    store.add_installed_mcp_server("postgres", postgres)
    store.add_installed_mcp_server("linear", linear.model_dump())

    reloaded = ConfigStore.load(path, "project", home=home)
    servers = reloaded.get_all_mcp_server_configs()

    assert reloaded.get_mcp_server_config("postgres") == postgres
    assert reloaded.get_mcp_server_config("linear") == linear

    assert isinstance(servers["postgres"], StdioServerConfig)
    assert servers["postgres"].args == ["-y", "pg"]
    assert isinstance(servers["linear"], NetworkServerConfig)
    assert servers["linear"].scope == "local"
    assert reloaded.all_dependencies()["mcpServers"] == ["postgres", "linear"]

    assert reloaded.remove_installed_mcp_server("postgres") is True
    assert reloaded.remove_installed_mcp_server("postgres") is False


def test_absolute_and_tilde_paths(home, project_config):
    """Test install path resolution"""
    path = project_config({"version": "1.0", "paths": {"subagents": "~/agents", "commands": "/opt/cmds"}})
    store = ConfigStore.load(path, "project", home=home)

    assert store.subagents_path() == home / "agents"
    assert str(store.commands_path()) == "/opt/cmds"


def test_context_reload(project_config, make_context):
    """Test that reload picks up changes made on disk"""
    path = project_config()
    context = make_context()
    assert context.store.installed_subagents() == []

    path.write_text(json.dumps({"version": "1.0", "installed": {"subagents": ["python-pro"]}}))

    assert context.store.installed_subagents() == []
    assert context.reload().installed_subagents() == ["python-pro"]


def test_project_config_defaults_to_project_paths(home, project, project_config):
    """Test that a project config without paths installs into the project"""
    store = ConfigStore.load(project_config(), "project", home=home)

    assert store.subagents_path() == project / ".claude" / "agents"


def test_partial_paths_use_project_defaults(home, project, project_config):
    """Test that path keys missing from a project config get project defaults"""
    path = project_config({"version": "1.0", "paths": {"subagents": "agents/"}})
    store = ConfigStore.load(path, "project", home=home)

    assert store.subagents_path() == project / "agents"
    assert store.commands_path() == project / ".claude" / "commands"


def test_entry_without_transport_loads(home, project_config):
    """Test that one record without a transport does not fail the load"""
    path = project_config({
        "version": "1.0",
        "installed": {
            "mcpServers": {
                "good": {"provider": "docker", "transport": "stdio", "scope": "local"},
                "legacy": {"provider": "claude", "scope": "local", "command": "npx"},
            }
        },
    })

    store = ConfigStore.load(path, "project", home=home)

    assert store.installed_mcp_servers() == ["good", "legacy"]
    legacy = store.get_mcp_server_config("legacy")
    assert isinstance(legacy, StdioServerConfig)
    assert legacy.command == "npx"
