"""
Tests for subagent and command installation
"""

import pytest

from bwc.core.errors import DescriptorNotFound, InstallAborted
from bwc.core.items import ABORT, SKIP, ItemInstaller


@pytest.fixture
def store(project_config, make_context):
    project_config()
    return make_context().store


@pytest.fixture
def installer(store, registry):
    return ItemInstaller(store, registry)


def test_install_subagent(project, installer, registry):
    """Test that a subagent is written and recorded"""
    registry.files["subagents/python-pro.md"] = "---\nname: python-pro\n---\n"

    result = installer.install_subagent("python-pro")

    path = project / ".claude" / "agents" / "python-pro.md"
    assert result.installed is True
    assert result.path == path
    assert path.read_text() == "---\nname: python-pro\n---\n"
    assert installer.store.installed_subagents() == ["python-pro"]


def test_install_command(project, installer):
    result = installer.install_command("commit")

    assert result.path == project / ".claude" / "commands" / "commit.md"
    assert installer.store.installed_commands() == ["commit"]


def test_unknown_item(installer):
    with pytest.raises(DescriptorNotFound, match="Subagent 'nope' not found in registry"):
        installer.install_subagent("nope")


def test_existing_file_handler(project, installer):
    """Test skip and abort answers for an existing file"""
    path = project / ".claude" / "agents" / "python-pro.md"
    path.parent.mkdir(parents=True)
    path.write_text("mine")

    seen = []
    installer.on_exists = lambda kind, name, target: seen.append((kind, name, target)) or SKIP
    result = installer.install_subagent("python-pro")

    assert result.installed is False
    assert seen == [("subagent", "python-pro", path)]
    assert path.read_text() == "mine"
    assert installer.store.installed_subagents() == []

    installer.on_exists = lambda kind, name, target: ABORT
    with pytest.raises(InstallAborted):
        installer.install_subagent("python-pro")


def test_remove_and_missing_files(project, installer):
    """Test removal and detection of deleted files"""
    installer.install_subagent("python-pro")
    installer.install_command("commit")
    (project / ".claude" / "commands" / "commit.md").unlink()

    missing = installer.missing_files()
    assert [(kind, name) for kind, name, _ in missing] == [("command", "commit")]

    assert installer.remove_subagent("python-pro") is True
    assert not (project / ".claude" / "agents" / "python-pro.md").exists()
    assert installer.remove_subagent("python-pro") is False
    assert installer.remove_command("commit") is True
